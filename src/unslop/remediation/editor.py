"""Applying a mutation plan to file text."""

from unslop.models.findings import FixAction
from unslop.models.remediation import MutationPlan, PlannedEdit
from unslop.remediation.planner import split_lines


class EditMismatchError(Exception):
    """Raised when a planned span does not match the text it is applied to."""

    pass


def apply_plan(text: str, plan: MutationPlan) -> str:
    """Apply every edit in a plan, last span first.

    Working from the end of the file means an edit never moves the lines or
    columns of an edit that is still to be applied. Each applied edit records
    its line delta on the plan so later findings can be renumbered.

    Args:
        text: Pre-mutation file content
        plan: Non-overlapping edits for this file

    Returns:
        Mutated content

    Raises:
        EditMismatchError: If a span is not at its planned position
    """
    lines = split_lines(text)
    plan.line_deltas = []

    for edit in plan.ordered():
        start = edit.line - 1
        span = edit.span_lines
        replacement = _replace_span(lines[start : start + span], edit)
        lines[start : start + span] = replacement
        plan.line_deltas.append((edit.line + span - 1, len(replacement) - span))

    return "\n".join(lines)


def _replace_span(block_lines: list[str], edit: PlannedEdit) -> list[str]:
    block = "\n".join(block_lines)
    end = edit.column + len(edit.old_text)
    if block[edit.column : end] != edit.old_text:
        raise EditMismatchError(
            f"Finding {edit.finding_id}: expected {edit.old_text!r} at "
            f"line {edit.line}, column {edit.column}"
        )

    head, tail = block[: edit.column], block[end:]
    if edit.action != FixAction.DELETE:
        return split_lines(head + edit.new_text + tail)

    result = head + tail
    if not result.strip():
        return []

    # Deleting a trailing comment should not leave dangling spaces behind.
    if not tail.strip():
        eol = "\r" if tail.endswith("\r") else ""
        result = head.rstrip() + eol
    return split_lines(result)
