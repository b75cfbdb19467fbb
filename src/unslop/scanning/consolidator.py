"""Consolidator for merging findings from all scanner workers."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from unslop.models.findings import (
    DetectedFinding,
    Finding,
    FindingSummary,
    FindingType,
    Location,
)
from unslop.models.report import PartitionFailure, Report, Scope, utc_now
from unslop.safety import classify

logger = logging.getLogger(__name__)

SuppressionKey = tuple[Location, FindingType]


@dataclass
class ConsolidationResult:
    """Consolidated findings and what was dropped on the way."""

    findings: list[Finding]
    duplicates_dropped: int = 0
    suppressed: int = 0

    @property
    def summary(self) -> FindingSummary:
        return FindingSummary.from_findings(self.findings)


class Consolidator:
    """Merges per-partition finding lists into one id-assigned list."""

    def __init__(self, suppression: set[SuppressionKey] | None = None) -> None:
        """Initialize the consolidator.

        Args:
            suppression: (location, type) pairs already recorded in a sibling report
        """
        self.suppression = suppression or set()

    def consolidate(self, finding_lists: list[list[DetectedFinding]]) -> ConsolidationResult:
        """Merge findings into a single report-ordered list.

        Algorithm:
        1. Flatten partition outputs, keeping worker emission order
        2. Drop later duplicates of the same (location, type)
        3. Drop findings whose (location, type) is in the suppression set
        4. Assign ids 1..n in the surviving order
        5. Classify each finding's fix safety

        Args:
            finding_lists: Per-partition findings, in partition order

        Returns:
            Consolidated findings with drop counts
        """
        seen: set[SuppressionKey] = set()
        survivors: list[DetectedFinding] = []
        duplicates = 0
        suppressed = 0

        for findings in finding_lists:
            for finding in findings:
                key = finding.dedupe_key
                if key in seen:
                    duplicates += 1
                    continue
                seen.add(key)

                if key in self.suppression:
                    suppressed += 1
                    logger.debug(f"Suppressed {finding.type.value} at {finding.location}")
                    continue

                survivors.append(finding)

        consolidated = [
            self._to_finding(finding_id, finding)
            for finding_id, finding in enumerate(survivors, start=1)
        ]

        logger.info(
            f"Consolidated {len(consolidated)} findings "
            f"({duplicates} duplicates, {suppressed} suppressed)"
        )
        return ConsolidationResult(
            findings=consolidated,
            duplicates_dropped=duplicates,
            suppressed=suppressed,
        )

    def build_report(
        self,
        finding_lists: list[list[DetectedFinding]],
        scope: Scope,
        source_fingerprint: str | None,
        files_scanned: int,
        items_scanned: int,
        failures: list[PartitionFailure] | None = None,
    ) -> Report:
        """Consolidate findings and wrap them in a report."""
        result = self.consolidate(finding_lists)
        return Report(
            created_at=utc_now(),
            source_fingerprint=source_fingerprint,
            scope=scope,
            files_scanned=files_scanned,
            items_scanned=items_scanned,
            findings=result.findings,
            partial_failures=list(failures or []),
        )

    def _to_finding(self, finding_id: int, detected: DetectedFinding) -> Finding:
        return Finding(
            id=finding_id,
            type=detected.type,
            category=detected.category,
            location=detected.location,
            original_text=detected.original_text,
            suggestion=detected.suggestion,
            risk=detected.risk,
            fix_safety=classify(detected.type),
            fix_action=detected.fix_action,
            column=detected.column,
            rule_id=detected.rule_id,
        )


def load_suppression_set(path: Path | None) -> set[SuppressionKey]:
    """Read (location, type) pairs from a sibling report.

    A missing, unreadable or malformed report means no suppression; the scan
    must not fail because an optional cross-reference is unavailable.

    Args:
        path: Report-shaped JSON document, or None

    Returns:
        Pairs to suppress
    """
    if path is None:
        return set()

    try:
        with open(path) as f:
            data = json.load(f)
        raw_findings = data["findings"]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Ignoring suppression report {path}: {e}")
        return set()

    keys: set[SuppressionKey] = set()
    for raw in raw_findings:
        try:
            location = raw["location"]
            keys.add(
                (
                    Location(path=location["path"], line=int(location["line"])),
                    FindingType(raw["type"]),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Skipping unusable suppression entry {raw!r}: {e}")

    logger.info(f"Loaded {len(keys)} suppression entries from {path}")
    return keys
