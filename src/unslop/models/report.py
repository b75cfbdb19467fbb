"""Report models."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from unslop.models.findings import Category, Finding, FindingSummary, FixSafety

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class Scope(Enum):
    """Which artifacts a scan covered."""

    CHANGED = "changed"
    ALL = "all"


@dataclass
class PartitionFailure:
    """A scanner worker that did not complete."""

    partition: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"partition": self.partition, "reason": self.reason}


@dataclass
class Report:
    """Consolidated, persisted scan output."""

    created_at: datetime
    source_fingerprint: str | None
    scope: Scope
    files_scanned: int
    items_scanned: int
    findings: list[Finding]
    schema_version: int = SCHEMA_VERSION
    partial_failures: list[PartitionFailure] = field(default_factory=list)

    @property
    def summary(self) -> FindingSummary:
        """Aggregate counts by category, risk and fix safety."""
        return FindingSummary.from_findings(self.findings)

    @property
    def safe_findings(self) -> list[Finding]:
        return [f for f in self.findings if f.fix_safety == FixSafety.SAFE]

    @property
    def review_findings(self) -> list[Finding]:
        return [f for f in self.findings if f.fix_safety == FixSafety.NEEDS_REVIEW]

    def findings_in(self, categories: set[Category]) -> list[Finding]:
        """Findings restricted to the given categories (all when empty)."""
        if not categories:
            return list(self.findings)
        return [f for f in self.findings if f.category in categories]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible report document."""
        return {
            "schema_version": self.schema_version,
            "created_at": self.created_at.isoformat(),
            "source_fingerprint": self.source_fingerprint,
            "scope": self.scope.value,
            "files_scanned": self.files_scanned,
            "items_scanned": self.items_scanned,
            "findings": [f.to_dict() for f in self.findings],
            "summary": self.summary.to_dict(),
            "partial_failures": [p.to_dict() for p in self.partial_failures],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Report":
        """Parse a report document.

        Unknown top-level keys are ignored. The ``summary`` block is derived
        data and is recomputed from ``findings`` rather than trusted.

        Args:
            data: Decoded JSON document

        Returns:
            Parsed report

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field has an invalid value
        """
        findings = []
        for raw in data.get("findings", []):
            try:
                findings.append(Finding.from_dict(raw))
            except ValueError as e:
                # Types from a newer catalog cannot be modelled; leave them out
                logger.warning(f"Skipping unreadable finding {raw.get('id')}: {e}")

        return cls(
            schema_version=int(data.get("schema_version", SCHEMA_VERSION)),
            created_at=datetime.fromisoformat(data["created_at"]),
            source_fingerprint=data.get("source_fingerprint"),
            scope=Scope(data.get("scope", Scope.CHANGED.value)),
            files_scanned=int(data.get("files_scanned", 0)),
            items_scanned=int(data.get("items_scanned", 0)),
            findings=findings,
            partial_failures=[
                PartitionFailure(partition=p["partition"], reason=p["reason"])
                for p in data.get("partial_failures", [])
            ],
        )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
