"""Code detector: scans comment text only."""

from pathlib import Path

from unslop.detectors.base import Detector
from unslop.models.artifacts import COMMENT_MARKERS, ArtifactKind
from unslop.models.findings import Category, DetectedFinding, Location

# Markers that may also trail code on the same line
TRAILING_MARKERS = ("#", "//")


class CodeDetector(Detector):
    """Scans the comments embedded in source files."""

    KIND = ArtifactKind.CODE
    CATEGORIES = frozenset({Category.CODE_ANNOTATION, Category.VOCABULARY})

    def scan_text(self, target: str, text: str) -> list[DetectedFinding]:
        markers = COMMENT_MARKERS.get(Path(target).suffix.lower(), ())
        findings = []
        for number, line in enumerate(text.split("\n"), start=1):
            line = line.rstrip("\r")
            start = comment_start(line, markers)
            if start is None:
                continue
            findings.extend(self.match_line(Location(target, number), line[start:], offset=start))
        return findings


def comment_start(line: str, markers: tuple[str, ...]) -> int | None:
    """Column where a line's comment begins, or None if it has none.

    Full-line comments use any marker. Trailing comments are recognised for
    ``#`` and ``//`` when the code before them has no open string literal.
    """
    stripped = line.lstrip()
    if not stripped:
        return None
    indent = len(line) - len(stripped)
    for marker in markers:
        if stripped.startswith(marker):
            return indent

    for marker in markers:
        if marker not in TRAILING_MARKERS:
            continue
        index = line.find(f" {marker}")
        while index != -1:
            code = line[:index]
            if code.count('"') % 2 == 0 and code.count("'") % 2 == 0:
                return index + 1
            index = line.find(f" {marker}", index + 1)
    return None
