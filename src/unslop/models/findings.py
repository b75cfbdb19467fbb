"""Finding models for scan and remediation results."""

from dataclasses import dataclass, field
from enum import Enum

SYNTHETIC_SCHEMES = ("commit:", "pr:")


class Category(Enum):
    """Categories for findings."""

    CONTENT = "content"
    VOCABULARY = "vocabulary"
    FORMATTING = "formatting"
    COMMUNICATION = "communication"
    FILLER = "filler"
    CODE_ANNOTATION = "code_annotation"


class FindingType(Enum):
    """Specific pattern tags. Every type belongs to exactly one category."""

    FILLER_PHRASE = "filler_phrase"
    HEDGING_PHRASE = "hedging_phrase"
    AI_VOCABULARY_HIGH = "ai_vocabulary_high"
    AI_VOCABULARY_MEDIUM = "ai_vocabulary_medium"
    EMOJI_HEADING = "emoji_heading"
    EXCESSIVE_BOLD = "excessive_bold"
    EM_DASH_OVERUSE = "em_dash_overuse"
    SYCOPHANTIC_OPENER = "sycophantic_opener"
    CHATBOT_CLOSER = "chatbot_closer"
    KNOWLEDGE_CUTOFF = "knowledge_cutoff"
    PROMOTIONAL_LANGUAGE = "promotional_language"
    SIGNIFICANCE_INFLATION = "significance_inflation"
    VAGUE_ATTRIBUTION = "vague_attribution"
    TAUTOLOGICAL_ANNOTATION = "tautological_annotation"
    GENERATED_MARKER = "generated_marker"
    NARRATING_COMMENT = "narrating_comment"

    @property
    def category(self) -> Category:
        """Category this type is tagged with."""
        return TYPE_CATEGORIES[self]


TYPE_CATEGORIES: dict[FindingType, Category] = {
    FindingType.FILLER_PHRASE: Category.FILLER,
    FindingType.HEDGING_PHRASE: Category.FILLER,
    FindingType.AI_VOCABULARY_HIGH: Category.VOCABULARY,
    FindingType.AI_VOCABULARY_MEDIUM: Category.VOCABULARY,
    FindingType.EMOJI_HEADING: Category.FORMATTING,
    FindingType.EXCESSIVE_BOLD: Category.FORMATTING,
    FindingType.EM_DASH_OVERUSE: Category.FORMATTING,
    FindingType.SYCOPHANTIC_OPENER: Category.COMMUNICATION,
    FindingType.CHATBOT_CLOSER: Category.COMMUNICATION,
    FindingType.KNOWLEDGE_CUTOFF: Category.COMMUNICATION,
    FindingType.PROMOTIONAL_LANGUAGE: Category.CONTENT,
    FindingType.SIGNIFICANCE_INFLATION: Category.CONTENT,
    FindingType.VAGUE_ATTRIBUTION: Category.CONTENT,
    FindingType.TAUTOLOGICAL_ANNOTATION: Category.CODE_ANNOTATION,
    FindingType.GENERATED_MARKER: Category.CODE_ANNOTATION,
    FindingType.NARRATING_COMMENT: Category.CODE_ANNOTATION,
}


class Risk(Enum):
    """Severity of leaving a finding unfixed. Informational only."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FixSafety(Enum):
    """Whether a fix may be applied without confirmation."""

    SAFE = "safe"  # Mechanically reversible, no judgment needed
    NEEDS_REVIEW = "needs_review"  # Requires a decision before applying


class FixAction(Enum):
    """How a fix changes the located span."""

    DELETE = "delete"
    REWRITE = "rewrite"


@dataclass(frozen=True)
class Location:
    """Where a finding was observed.

    ``path`` is either a repository-relative file path or a synthetic id
    such as ``commit:<sha>``; synthetic locations always use line 0.
    """

    path: str
    line: int

    def __post_init__(self) -> None:
        """Validate location data."""
        if self.is_synthetic:
            if self.line != 0:
                raise ValueError(f"Synthetic location {self.path} must use line 0, got {self.line}")
        elif self.line < 1:
            raise ValueError(f"line must be >= 1 for file {self.path}, got {self.line}")

    @property
    def is_synthetic(self) -> bool:
        """True when the location refers to non-file provenance."""
        return is_synthetic_path(self.path)

    def __str__(self) -> str:
        return self.path if self.is_synthetic else f"{self.path}:{self.line}"


def is_synthetic_path(path: str) -> bool:
    """Check whether a path is a commit or review-thread identifier."""
    return path.startswith(SYNTHETIC_SCHEMES)


@dataclass
class DetectedFinding:
    """A raw finding produced by a detector, before consolidation."""

    type: FindingType
    location: Location
    original_text: str
    suggestion: str
    risk: Risk
    fix_action: FixAction
    column: int | None = None
    rule_id: str | None = None

    @property
    def category(self) -> Category:
        """Category derived from the finding type."""
        return self.type.category

    @property
    def dedupe_key(self) -> tuple[Location, FindingType]:
        """Key under which duplicate findings collapse."""
        return (self.location, self.type)


@dataclass
class Finding:
    """A consolidated finding with a report-scoped id."""

    id: int
    type: FindingType
    category: Category
    location: Location
    original_text: str
    suggestion: str
    risk: Risk
    fix_safety: FixSafety
    fix_action: FixAction
    column: int | None = None
    rule_id: str | None = None

    def __post_init__(self) -> None:
        """Validate finding data."""
        if self.id < 1:
            raise ValueError(f"id must be >= 1, got {self.id}")
        if self.category != self.type.category:
            raise ValueError(
                f"Finding type {self.type.value} belongs to {self.type.category.value}, "
                f"not {self.category.value}"
            )
        if not self.original_text:
            raise ValueError(f"Finding {self.id} has empty original_text")

    @property
    def dedupe_key(self) -> tuple[Location, FindingType]:
        """Key under which duplicate findings collapse."""
        return (self.location, self.type)

    @property
    def replacement(self) -> str:
        """Text the original span is replaced with when the fix lands."""
        return "" if self.fix_action == FixAction.DELETE else self.suggestion

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category.value,
            "type": self.type.value,
            "location": {"path": self.location.path, "line": self.location.line},
            "column": self.column,
            "original_text": self.original_text,
            "suggestion": self.suggestion,
            "risk": self.risk.value,
            "fix_safety": self.fix_safety.value,
            "fix_action": self.fix_action.value,
            "rule_id": self.rule_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Finding":
        finding_type = FindingType(data["type"])
        location = data["location"]
        return cls(
            id=int(data["id"]),
            type=finding_type,
            category=Category(data.get("category", finding_type.category.value)),
            location=Location(path=location["path"], line=int(location["line"])),
            original_text=data["original_text"],
            suggestion=data.get("suggestion") or "",
            risk=Risk(data.get("risk", "medium")),
            fix_safety=FixSafety(data.get("fix_safety", "needs_review")),
            fix_action=FixAction(data.get("fix_action", "rewrite")),
            column=data.get("column"),
            rule_id=data.get("rule_id"),
        )


@dataclass
class FindingSummary:
    """Aggregate counts over a list of findings."""

    total: int = 0
    by_category: dict[Category, int] = field(default_factory=lambda: dict.fromkeys(Category, 0))
    by_risk: dict[Risk, int] = field(default_factory=lambda: dict.fromkeys(Risk, 0))
    by_safety: dict[FixSafety, int] = field(default_factory=lambda: dict.fromkeys(FixSafety, 0))

    @classmethod
    def from_findings(cls, findings: list[Finding]) -> "FindingSummary":
        """Count findings by category, risk and fix safety."""
        summary = cls()
        for finding in findings:
            summary.total += 1
            summary.by_category[finding.category] += 1
            summary.by_risk[finding.risk] += 1
            summary.by_safety[finding.fix_safety] += 1
        return summary

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "by_category": {k.value: v for k, v in self.by_category.items()},
            "by_risk": {k.value: v for k, v in self.by_risk.items()},
            "by_safety": {k.value: v for k, v in self.by_safety.items()},
        }
