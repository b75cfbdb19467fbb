"""Prose detector for documentation files."""

from unslop.detectors.base import Detector, unfenced_lines
from unslop.models.artifacts import ArtifactKind
from unslop.models.findings import Category, DetectedFinding, Location


class ProseDetector(Detector):
    """Scans prose line by line, skipping fenced code blocks.

    Prose is the only partition that runs the full category set; a category
    filter from the command line narrows it.
    """

    KIND = ArtifactKind.PROSE
    CATEGORIES = frozenset(Category)

    def select_categories(self, requested: set[Category]) -> set[Category]:
        return set(requested) if requested else set(self.CATEGORIES)

    def scan_text(self, target: str, text: str) -> list[DetectedFinding]:
        findings = []
        for number, line in unfenced_lines(text):
            findings.extend(self.match_line(Location(target, number), line))
        return findings
