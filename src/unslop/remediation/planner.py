"""Locating finding spans and collecting them into per-file mutation plans."""

import logging

from unslop.models.findings import Finding, FixAction
from unslop.models.remediation import MutationPlan, PlannedEdit

logger = logging.getLogger(__name__)


def split_lines(text: str) -> list[str]:
    """Split on LF only so CR characters and the final newline survive a rejoin."""
    return text.split("\n")


def locate_span(lines: list[str], finding: Finding) -> int | None:
    """Find the column where a finding's text starts on its recorded line.

    The finding's column is tried first; otherwise the first occurrence that
    starts on the recorded line is used.

    Args:
        lines: File content split with split_lines
        finding: Finding with a file location

    Returns:
        0-based column, or None if the text no longer occurs there
    """
    start = finding.location.line - 1
    span = finding.original_text.count("\n") + 1
    if start < 0 or start + span > len(lines):
        return None

    block = "\n".join(lines[start : start + span])
    if finding.column is not None and block.startswith(finding.original_text, finding.column):
        return finding.column

    column = block.find(finding.original_text)
    if column < 0 or column > len(lines[start]):
        return None
    return column


class MutationPlanner:
    """Builds mutation plans against a fixed snapshot of file contents.

    Contents are supplied by the caller so that planning never reads a file
    twice and dry runs can share the same code path as apply runs.
    """

    def __init__(self, contents: dict[str, str]) -> None:
        """Initialize the planner.

        Args:
            contents: Pre-mutation text keyed by report path
        """
        self._lines = {path: split_lines(text) for path, text in contents.items()}
        self.plans: dict[str, MutationPlan] = {}

    def edit_for(
        self, finding: Finding, new_text: str, action: FixAction | None = None
    ) -> PlannedEdit | None:
        """Build the edit for a finding, or None when the finding is stale.

        Args:
            finding: Finding with a file location
            new_text: Text that replaces the span
            action: Overrides the finding's own fix action
        """
        lines = self._lines.get(finding.location.path)
        if lines is None:
            return None

        column = locate_span(lines, finding)
        if column is None:
            logger.debug(f"Finding {finding.id} no longer matches {finding.location}")
            return None

        return PlannedEdit(
            finding_id=finding.id,
            line=finding.location.line,
            column=column,
            old_text=finding.original_text,
            new_text=new_text,
            action=action or finding.fix_action,
        )

    def add(self, path: str, edit: PlannedEdit) -> PlannedEdit | None:
        """Add an edit to the file's plan.

        Returns:
            The already planned edit it overlaps, or None if it was added
        """
        plan = self.plans.setdefault(path, MutationPlan(path=path))
        return plan.add(edit)
