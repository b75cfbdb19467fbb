"""Remediator that turns report findings into validated file edits."""

import logging
from pathlib import Path

from unslop.models.findings import Finding, FixAction, FixSafety
from unslop.models.remediation import (
    FileFailure,
    MutationPlan,
    RemediationMode,
    RemediationResult,
    ReviewState,
)
from unslop.remediation.decisions import DecisionProvider, ReviewSession
from unslop.remediation.editor import EditMismatchError, apply_plan
from unslop.remediation.planner import MutationPlanner
from unslop.remediation.validator import RollbackGuard, Validator
from unslop.vcs.git import GitError, GitRepository

logger = logging.getLogger(__name__)


class DirtyWorkingTreeError(Exception):
    """Raised when apply mode would mix edits into uncommitted work."""

    def __init__(self, paths: list[str]) -> None:
        self.paths = paths
        listed = ", ".join(paths[:5]) + (" ..." if len(paths) > 5 else "")
        super().__init__(f"Working tree has uncommitted changes: {listed}")


class Remediator:
    """Plans and applies fixes for a set of report findings.

    Safe findings are planned automatically. Needs-review findings, and safe
    findings downgraded because they overlap an earlier edit, only become edits
    through a decision provider. Every written file is validated and rolled
    back on its own if it no longer parses.
    """

    def __init__(
        self,
        root: Path,
        validator: Validator | None = None,
        guard: RollbackGuard | None = None,
        repository: GitRepository | None = None,
        require_clean_tree: bool = True,
        ignore_patterns: list[str] | None = None,
    ) -> None:
        """Initialize the remediator.

        Args:
            root: Directory report paths are relative to
            validator: Post-mutation validator
            guard: Rollback guard (snapshot strategy by default)
            repository: Git repository for the clean-tree precondition
            require_clean_tree: Refuse to apply over uncommitted changes
            ignore_patterns: Paths the clean-tree check ignores
        """
        self.root = Path(root)
        self.validator = validator or Validator()
        self.guard = guard or RollbackGuard(self.root)
        self.repository = repository
        self.require_clean_tree = require_clean_tree
        self.ignore_patterns = ignore_patterns or []

    def remediate(
        self,
        findings: list[Finding],
        mode: RemediationMode,
        decisions: DecisionProvider | None = None,
    ) -> RemediationResult:
        """Remediate findings in report order.

        Args:
            findings: Findings to act on, in report order
            mode: DRY_RUN returns plans only; APPLY writes files
            decisions: Provider for needs-review findings; without one they
                stay pending

        Returns:
            What was applied, skipped and rolled back

        Raises:
            DirtyWorkingTreeError: In apply mode, if the tree has uncommitted changes
        """
        if mode == RemediationMode.APPLY:
            self._check_clean_tree()

        result = RemediationResult(mode=mode)
        report_order = {finding.id: index for index, finding in enumerate(findings)}

        fixable = []
        for finding in findings:
            if finding.location.is_synthetic:
                result.not_auto_fixable.append(finding.id)
            else:
                fixable.append(finding)

        contents = self._read_contents(fixable)
        planner = MutationPlanner(contents)
        review: list[Finding] = []

        for finding in fixable:
            if finding.fix_safety != FixSafety.SAFE:
                review.append(finding)
                continue

            edit = planner.edit_for(finding, finding.replacement)
            if edit is None:
                result.stale.append(finding.id)
                continue

            conflict = planner.add(finding.location.path, edit)
            if conflict is not None:
                logger.info(
                    f"Finding {finding.id} overlaps finding {conflict.finding_id}; needs review"
                )
                result.downgraded.append(finding.id)
                review.append(finding)

        review.sort(key=lambda f: report_order[f.id])
        self._review(review, planner, mode, decisions, result)
        result.plans = planner.plans

        if mode == RemediationMode.DRY_RUN:
            logger.info(f"Dry run: {result.planned_edit_count} edits planned")
            return result

        for path, plan in planner.plans.items():
            self._apply_file(path, plan, contents[path], result)

        logger.info(
            f"Applied {len(result.applied)} fixes to {len(result.files_written)} files "
            f"({len(result.failures)} rolled back)"
        )
        return result

    def _check_clean_tree(self) -> None:
        if not self.require_clean_tree or self.repository is None:
            return
        if not self.repository.is_repo:
            logger.debug("Not a git repository; skipping clean tree check")
            return
        dirty = self.repository.dirty_paths(self.ignore_patterns)
        if dirty:
            raise DirtyWorkingTreeError(dirty)

    def _read_contents(self, findings: list[Finding]) -> dict[str, str]:
        contents: dict[str, str] = {}
        for path in dict.fromkeys(f.location.path for f in findings):
            try:
                contents[path] = (self.root / path).read_bytes().decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Cannot read {path}, its findings are stale: {e}")
        return contents

    def _review(
        self,
        review: list[Finding],
        planner: MutationPlanner,
        mode: RemediationMode,
        decisions: DecisionProvider | None,
        result: RemediationResult,
    ) -> None:
        located = []
        for finding in review:
            if planner.edit_for(finding, finding.replacement) is None:
                result.stale.append(finding.id)
            else:
                located.append(finding)

        if mode == RemediationMode.DRY_RUN or decisions is None:
            result.pending.extend(f.id for f in located)
            return

        session = ReviewSession.for_findings(located).run(decisions)
        result.aborted = session.aborted

        for item in session.items:
            finding = item.finding
            if item.approved:
                action = FixAction.REWRITE if item.state == ReviewState.SUBSTITUTED else None
                edit = planner.edit_for(finding, item.replacement, action)
                if planner.add(finding.location.path, edit) is not None:
                    logger.warning(f"Finding {finding.id} overlaps a planned edit; not applied")
                    result.conflicting.append(finding.id)
            elif item.state == ReviewState.REJECTED:
                result.rejected.append(finding.id)
            else:
                result.pending.append(finding.id)

    def _apply_file(
        self, path: str, plan: MutationPlan, original: str, result: RemediationResult
    ) -> None:
        try:
            mutated = apply_plan(original, plan)
        except EditMismatchError as e:
            result.failures.append(FileFailure(path, str(e), plan.finding_ids))
            return

        if mutated == original:
            logger.debug(f"No change to {path}")
            return

        target = self.root / path
        self.guard.snapshot(path)
        try:
            with open(target, "w", encoding="utf-8", newline="") as f:
                f.write(mutated)
        except OSError as e:
            reason = f"write failed: {e}" + self._rollback(path)
            result.failures.append(FileFailure(path, reason, plan.finding_ids))
            return

        validation = self.validator.validate(target, baseline=original)
        if not validation.valid:
            logger.error(f"{path} failed validation: {validation.reason}")
            reason = validation.reason + self._rollback(path)
            result.failures.append(FileFailure(path, reason, plan.finding_ids))
            return

        self.guard.discard(path)
        result.applied.extend(plan.finding_ids)
        result.files_written.append(path)

    def _rollback(self, path: str) -> str:
        """Restore a failed file; returns a note for the failure reason when that fails too."""
        try:
            self.guard.rollback(path)
        except (GitError, KeyError, OSError) as e:
            logger.error(f"Could not roll back {path}: {e}")
            return f"; rollback failed: {e}"
        return ""
