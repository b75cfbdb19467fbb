"""Metadata detector for commit messages and pull request text."""

import logging

from unslop.detectors.base import Detector, unfenced_lines
from unslop.detectors.catalog import PatternRule
from unslop.models.artifacts import ArtifactKind
from unslop.models.findings import Category, DetectedFinding, Location

logger = logging.getLogger(__name__)


class MetadataDetector(Detector):
    """Scans non-file text. Findings are located at line 0 of the artifact id."""

    KIND = ArtifactKind.METADATA
    CATEGORIES = frozenset({Category.COMMUNICATION, Category.FILLER, Category.VOCABULARY})

    def __init__(
        self,
        rules: list[PatternRule],
        texts: dict[str, str],
        categories: set[Category] | None = None,
        detector_id: str | None = None,
    ) -> None:
        """Initialize the detector.

        Args:
            rules: Catalog rules
            texts: Artifact id to text, e.g. commit messages and PR comments
            categories: Categories requested on the command line (ignored)
            detector_id: Optional custom id
        """
        super().__init__(rules, categories=categories, detector_id=detector_id)
        self.texts = texts

    def read(self, target: str) -> str:
        try:
            return self.texts[target]
        except KeyError:
            raise KeyError(f"No text collected for metadata artifact {target}") from None

    def scan_text(self, target: str, text: str) -> list[DetectedFinding]:
        location = Location(target, 0)
        findings = []
        for _, line in unfenced_lines(text):
            findings.extend(self.match_line(location, line))
        return findings
