"""Session controller tying scanning, storage and remediation together."""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path

from unslop.config import Config
from unslop.detectors import CodeDetector, Detector, MetadataDetector, ProseDetector, load_catalog
from unslop.detectors.catalog import PatternRule
from unslop.models.artifacts import ArtifactKind
from unslop.models.findings import Category, Finding, Location
from unslop.models.remediation import MutationPlan, RemediationMode, RemediationResult
from unslop.models.report import Report, Scope
from unslop.remediation import DecisionProvider, Remediator, RollbackGuard, Validator
from unslop.scanning import (
    Consolidator,
    ScannerPool,
    ScanOutcome,
    load_suppression_set,
    partition_artifacts,
)
from unslop.store import ReportStore, is_stale
from unslop.vcs import GitError, GitRepository, PullRequestMetadataSource, PullRequestRef

logger = logging.getLogger(__name__)


class StaleReportError(Exception):
    """Raised when the report was computed against another revision and staleness is fatal."""

    pass


@dataclass
class ScanResult:
    """Outcome of a scan session."""

    report: Report
    report_path: Path
    outcome: ScanOutcome

    @property
    def partial(self) -> bool:
        """Check if some partitions failed while others completed."""
        return bool(self.report.partial_failures)


@dataclass
class RemediateSessionResult:
    """Outcome of a remediation session."""

    report: Report
    result: RemediationResult
    stale_report: bool = False
    report_deleted: bool = False
    report_rewritten: bool = False
    retained: list[Finding] = field(default_factory=list)
    # Unapplied findings removed together with a deleted report
    dropped: list[int] = field(default_factory=list)

    @property
    def failed_files(self) -> list[str]:
        return self.result.failed_files


def build_detectors(
    rules: list[PatternRule],
    root: Path,
    texts: dict[str, str] | None = None,
    categories: set[Category] | None = None,
) -> dict[ArtifactKind, Detector]:
    """Create one detector per partition kind.

    Args:
        rules: Catalog rules
        root: Working tree root
        texts: Metadata text keyed by synthetic artifact id
        categories: Category filter; only the prose detector honors it

    Returns:
        Detector per partition kind
    """
    return {
        ArtifactKind.PROSE: ProseDetector(rules, root=root, categories=categories),
        ArtifactKind.CODE: CodeDetector(rules, root=root, categories=categories),
        ArtifactKind.METADATA: MetadataDetector(rules, texts or {}, categories=categories),
    }


class SessionController:
    """Runs scan and remediate sessions.

    The controller is the only component that writes or deletes the report.
    """

    def __init__(
        self,
        config: Config,
        root: Path | None = None,
        repository: GitRepository | None = None,
        store: ReportStore | None = None,
        metadata_source: PullRequestMetadataSource | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            config: Loaded configuration
            root: Working tree root (default: current directory)
            repository: Git repository (default: one at root)
            store: Report store (default: the configured path under root)
            metadata_source: PR text source (default: built from GitHub settings)
        """
        self.config = config
        self.root = Path(root) if root else Path.cwd()
        self.repository = repository or GitRepository(self.root)
        self.store = store or ReportStore(self.root / config.store.path)
        self._metadata_source = metadata_source

    @property
    def metadata_source(self) -> PullRequestMetadataSource:
        if self._metadata_source is None:
            self._metadata_source = PullRequestMetadataSource(
                self.config.github.token, base_url=self.config.github.base_url
            )
        return self._metadata_source

    @property
    def store_ignore_pattern(self) -> str:
        """fnmatch pattern covering the report directory."""
        try:
            relative = self.store.path.resolve().relative_to(self.root.resolve())
        except ValueError:
            return str(self.store.path.parent / "*")
        return f"{relative.parent.as_posix()}/*" if relative.parent != Path(".") else relative.name

    async def scan(
        self,
        paths: list[str] | None = None,
        scope: Scope = Scope.CHANGED,
        categories: set[Category] | None = None,
        suppress_from: Path | None = None,
        pr: str | None = None,
    ) -> ScanResult:
        """Scan the working tree and persist a fresh report.

        Args:
            paths: Explicit files to scan; otherwise gathered from git
            scope: CHANGED (against scan.base_ref) or ALL tracked files
            categories: Category filter for prose
            suppress_from: Sibling report whose findings are not repeated
            pr: Pull request to include, as OWNER/REPO#N

        Returns:
            The written report and the raw pool outcome

        Raises:
            EmptyScopeError: If nothing in scope is scannable
            GitError: If git is needed but unavailable
        """
        candidates = self._gather_files(paths, scope)
        texts = self._gather_metadata(paths, scope, pr)
        candidates.extend(texts)

        partitioning = partition_artifacts(
            candidates,
            scope,
            root=self.root,
            ignore_patterns=self.config.scan.ignore_patterns + [self.store_ignore_pattern],
        )

        rules = load_catalog([Path(p) for p in self.config.scan.catalogs])
        pool = ScannerPool(
            build_detectors(rules, self.root, texts, categories),
            max_concurrency=self.config.pool.max_concurrency,
            timeout_seconds=self.config.pool.timeout_seconds,
        )
        outcome = await pool.scan(partitioning)

        consolidator = Consolidator(load_suppression_set(suppress_from))
        report = consolidator.build_report(
            outcome.finding_lists,
            scope=scope,
            source_fingerprint=self.repository.fingerprint(),
            files_scanned=partitioning.files_count,
            items_scanned=partitioning.items_count,
            failures=outcome.failures,
        )
        self.store.write(report)
        return ScanResult(report=report, report_path=self.store.path, outcome=outcome)

    def _gather_files(self, paths: list[str] | None, scope: Scope) -> list[str]:
        if paths:
            return [self._relative(p) for p in paths]
        if not self.repository.is_repo:
            raise GitError(f"{self.root} is not a git repository; pass paths to scan explicitly")
        if scope == Scope.ALL:
            return self.repository.tracked_files()
        return self.repository.changed_files(self.config.scan.base_ref)

    def _gather_metadata(self, paths: list[str] | None, scope: Scope, pr: str | None) -> dict[str, str]:
        texts: dict[str, str] = {}
        if not paths and self.config.scan.include_commits:
            base_ref = None if scope == Scope.ALL else self.config.scan.base_ref
            for commit in self.repository.commit_messages(base_ref, self.config.scan.max_commits):
                if commit.message:
                    texts[commit.artifact_id] = commit.message
        if pr:
            texts.update(self.metadata_source.fetch(PullRequestRef.parse(pr)))
        return texts

    def _relative(self, path: str) -> str:
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.resolve().relative_to(self.root.resolve())
            except ValueError:
                pass
        return candidate.as_posix()

    def remediate(
        self,
        mode: RemediationMode = RemediationMode.APPLY,
        categories: set[Category] | None = None,
        decisions: DecisionProvider | None = None,
        fail_on_stale: bool = False,
    ) -> RemediateSessionResult:
        """Remediate the stored report.

        In apply mode the report is deleted when no file failed validation;
        otherwise it is rewritten without the applied findings, with retained
        line numbers moved to match the edited files. Dry runs leave it alone.

        Args:
            mode: DRY_RUN or APPLY
            categories: Only remediate findings in these categories
            decisions: Provider for needs-review findings
            fail_on_stale: Treat a fingerprint mismatch as an error

        Returns:
            Session outcome

        Raises:
            ReportNotFoundError: If no report has been written
            ReportFormatError: If the report cannot be parsed
            StaleReportError: If the report is stale and fail_on_stale is set
            DirtyWorkingTreeError: In apply mode, if the tree has uncommitted changes
        """
        report = self.store.read()

        stale = is_stale(report, self.repository.fingerprint())
        if stale:
            if fail_on_stale:
                raise StaleReportError(
                    f"Report was computed at {report.source_fingerprint or 'an unknown revision'}"
                )
            logger.warning(
                "Report was computed against a different revision; stale findings will be skipped"
            )

        remediator = Remediator(
            self.root,
            validator=Validator(),
            guard=self._rollback_guard(),
            repository=self.repository,
            require_clean_tree=self.config.remediation.require_clean_tree,
            ignore_patterns=[self.store_ignore_pattern],
        )
        result = remediator.remediate(report.findings_in(categories or set()), mode, decisions)
        session = RemediateSessionResult(report=report, result=result, stale_report=stale)

        if mode == RemediationMode.DRY_RUN:
            return session

        if not result.has_failures:
            applied = set(result.applied)
            session.dropped = [f.id for f in report.findings if f.id not in applied]
            if session.dropped:
                logger.warning(
                    f"{len(session.dropped)} unapplied findings (pending, rejected or outside "
                    "the category filter) are removed with the report; scan again to see them"
                )
            self.store.delete()
            session.report_deleted = True
            return session

        session.retained = retained_findings(report.findings, result)
        self.store.write(replace(report, findings=session.retained))
        session.report_rewritten = True
        logger.warning(f"{len(result.failures)} files failed validation; report kept")
        return session

    def _rollback_guard(self) -> RollbackGuard:
        strategy = self.config.remediation.rollback_strategy
        return RollbackGuard(
            self.root,
            strategy=strategy,
            repository=self.repository if strategy == "vcs" else None,
        )


def retained_findings(findings: list[Finding], result: RemediationResult) -> list[Finding]:
    """Findings that survive a partially failed session, renumbered to the edited files.

    Args:
        findings: Every finding of the report, in report order
        result: Remediation outcome whose applied plans carry line deltas

    Returns:
        Unapplied findings with shifted line numbers and unchanged ids
    """
    applied = set(result.applied)
    written: dict[str, MutationPlan] = {
        path: result.plans[path] for path in result.files_written if path in result.plans
    }

    retained = []
    for finding in findings:
        if finding.id in applied:
            continue
        plan = written.get(finding.location.path)
        if plan is not None:
            shifted = plan.shift(finding.location.line)
            finding = replace(finding, location=Location(finding.location.path, shifted))
        retained.append(finding)
    return retained
