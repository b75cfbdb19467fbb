"""Base class for pattern detectors."""

import asyncio
import logging
from pathlib import Path

from unslop.detectors.catalog import PatternRule
from unslop.models.artifacts import ArtifactKind
from unslop.models.findings import Category, DetectedFinding, Location

logger = logging.getLogger(__name__)

FENCE_MARKERS = ("```", "~~~")


class Detector:
    """Base class for all detectors. One detector scans one partition."""

    # Subclasses should override these
    KIND: ArtifactKind = ArtifactKind.PROSE
    CATEGORIES: frozenset[Category] = frozenset(Category)

    def __init__(
        self,
        rules: list[PatternRule],
        root: Path | None = None,
        categories: set[Category] | None = None,
        detector_id: str | None = None,
    ) -> None:
        """Initialize the detector.

        Args:
            rules: Catalog rules; only those in this detector's categories are kept
            root: Working tree root that file targets are relative to
            categories: Categories requested on the command line
            detector_id: Optional custom id (defaults to the partition name)
        """
        self.root = Path(root) if root else Path.cwd()
        self.categories = self.select_categories(categories or set())
        self.rules = [
            rule for rule in rules if rule.category in self.categories and rule.applies_to(self.KIND)
        ]
        self._detector_id = detector_id or self.KIND.value

    @property
    def detector_id(self) -> str:
        """Unique identifier for this detector instance."""
        return self._detector_id

    def select_categories(self, requested: set[Category]) -> set[Category]:
        """Categories this detector applies.

        Reduced-set detectors keep their fixed set regardless of the request.
        """
        return set(self.CATEGORIES)

    async def scan(self, targets: list[str]) -> list[DetectedFinding]:
        """Scan targets and return findings in emission order.

        Args:
            targets: Paths or artifact ids of this detector's partition

        Returns:
            A list owned by the caller
        """
        return await asyncio.to_thread(self.scan_targets, targets)

    def scan_targets(self, targets: list[str]) -> list[DetectedFinding]:
        findings: list[DetectedFinding] = []
        for target in targets:
            text = self.read(target)
            found = self.scan_text(target, text)
            if found:
                logger.debug(f"{self.detector_id}: {len(found)} findings in {target}")
            findings.extend(found)
        return findings

    def read(self, target: str) -> str:
        """Read a target's text with line endings untranslated."""
        with open(self.root / target, encoding="utf-8", errors="replace", newline="") as f:
            return f.read()

    def scan_text(self, target: str, text: str) -> list[DetectedFinding]:
        """Scan one target's text. Subclasses must override."""
        raise NotImplementedError

    def match_line(self, location: Location, text: str, offset: int = 0) -> list[DetectedFinding]:
        """Run every rule against a piece of a line.

        Args:
            location: Location findings are reported at
            text: Text to match
            offset: Column of ``text`` within its line

        Returns:
            Findings in rule order, then match order
        """
        findings = []
        for rule in self.rules:
            for match in rule.regex.finditer(text):
                span = match.group(rule.group)
                if not span or not span.strip():
                    continue
                findings.append(
                    DetectedFinding(
                        type=rule.type,
                        location=location,
                        original_text=span,
                        suggestion=rule.suggestion_for(match),
                        risk=rule.risk,
                        fix_action=rule.action,
                        column=None if location.is_synthetic else offset + match.start(rule.group),
                        rule_id=rule.id,
                    )
                )
        return findings


def unfenced_lines(text: str) -> list[tuple[int, str]]:
    """(1-based line number, line) pairs outside fenced code blocks."""
    result = []
    in_fence = False
    for number, line in enumerate(text.split("\n"), start=1):
        if line.lstrip().startswith(FENCE_MARKERS):
            in_fence = not in_fence
            continue
        if not in_fence:
            result.append((number, line.rstrip("\r")))
    return result
