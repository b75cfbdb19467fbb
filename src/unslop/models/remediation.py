"""Remediation models: decisions, mutation plans and session results."""

from dataclasses import dataclass, field
from enum import Enum

from unslop.models.findings import FixAction


class RemediationMode(Enum):
    """Whether the remediator may touch files."""

    DRY_RUN = "dry_run"
    APPLY = "apply"


class DecisionKind(Enum):
    """Answers a decision provider can give for a needs-review finding."""

    ACCEPT = "accept"
    REJECT = "reject"
    SUBSTITUTE = "substitute"
    ABORT_REMAINING = "abort"


@dataclass(frozen=True)
class Decision:
    """A decision for one needs-review finding."""

    kind: DecisionKind
    text: str | None = None

    def __post_init__(self) -> None:
        """Validate decision data."""
        if self.kind == DecisionKind.SUBSTITUTE and self.text is None:
            raise ValueError("Substitute decisions require replacement text")

    @classmethod
    def accept(cls) -> "Decision":
        return cls(DecisionKind.ACCEPT)

    @classmethod
    def reject(cls) -> "Decision":
        return cls(DecisionKind.REJECT)

    @classmethod
    def substitute(cls, text: str) -> "Decision":
        return cls(DecisionKind.SUBSTITUTE, text)

    @classmethod
    def abort(cls) -> "Decision":
        return cls(DecisionKind.ABORT_REMAINING)


class ReviewState(Enum):
    """Lifecycle of a needs-review finding during one session.

    PENDING moves to exactly one of the other states and never back.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    SUBSTITUTED = "substituted"
    ABORTED = "aborted"


@dataclass
class PlannedEdit:
    """One span replacement inside a file."""

    finding_id: int
    line: int  # 1-based first line of the span
    column: int  # 0-based offset of the span within its first line
    old_text: str
    new_text: str
    action: FixAction

    @property
    def span_lines(self) -> int:
        """Number of lines the original span covers."""
        return self.old_text.count("\n") + 1

    @property
    def end(self) -> tuple[int, int]:
        """(line, column) just past the end of the original span."""
        if "\n" not in self.old_text:
            return (self.line, self.column + len(self.old_text))
        last_line = self.old_text.rsplit("\n", 1)[1]
        return (self.line + self.span_lines - 1, len(last_line))

    def overlaps(self, other: "PlannedEdit") -> bool:
        """Check whether two spans share at least one character position."""
        return (self.line, self.column) < other.end and (other.line, other.column) < self.end


@dataclass
class MutationPlan:
    """Ordered edits for a single file."""

    path: str
    edits: list[PlannedEdit] = field(default_factory=list)
    # (last line of applied span, line count delta), filled when applied
    line_deltas: list[tuple[int, int]] = field(default_factory=list)

    def add(self, edit: PlannedEdit) -> PlannedEdit | None:
        """Add an edit unless it overlaps a planned one.

        Returns:
            The conflicting planned edit, or None if the edit was added
        """
        for planned in self.edits:
            if planned.overlaps(edit):
                return planned
        self.edits.append(edit)
        return None

    def ordered(self) -> list[PlannedEdit]:
        """Edits sorted by descending (line, column), the only safe application order."""
        return sorted(self.edits, key=lambda e: (e.line, e.column), reverse=True)

    def shift(self, line: int) -> int:
        """Map a pre-mutation line number onto the mutated file."""
        delta = sum(d for last_line, d in self.line_deltas if last_line < line)
        return line + delta

    @property
    def finding_ids(self) -> list[int]:
        return [e.finding_id for e in self.edits]


@dataclass
class FileFailure:
    """A file whose mutation did not survive validation."""

    path: str
    reason: str
    finding_ids: list[int] = field(default_factory=list)


@dataclass
class RemediationResult:
    """Outcome of one remediator pass."""

    mode: RemediationMode
    plans: dict[str, MutationPlan] = field(default_factory=dict)
    applied: list[int] = field(default_factory=list)
    stale: list[int] = field(default_factory=list)
    downgraded: list[int] = field(default_factory=list)
    conflicting: list[int] = field(default_factory=list)
    rejected: list[int] = field(default_factory=list)
    pending: list[int] = field(default_factory=list)
    not_auto_fixable: list[int] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)
    files_written: list[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def failed_files(self) -> list[str]:
        return [f.path for f in self.failures]

    @property
    def has_failures(self) -> bool:
        """Check if any file failed validation and was rolled back."""
        return bool(self.failures)

    @property
    def planned_edit_count(self) -> int:
        return sum(len(p.edits) for p in self.plans.values())
