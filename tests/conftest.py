"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# 30 lines: filler phrase on line 10, "utilize" on line 25
SAMPLE_GUIDE_LINES = [f"Line {n} of the guide." for n in range(1, 31)]
SAMPLE_GUIDE_LINES[9] = "It's worth noting that the cache is warmed at startup."
SAMPLE_GUIDE_LINES[24] = "We utilize the cache for every lookup."
SAMPLE_GUIDE = "\n".join(SAMPLE_GUIDE_LINES) + "\n"

SAMPLE_PYTHON = """\
import os


def count(items):
    total = 0
    for item in items:
        total += 1  # increment total
    return total
"""

SAMPLE_README = """\
# 🚀 Overview

Great question! This library helps you delve into your data.

```python
# Here we utilize the client
client.utilize()
```

I hope this helps!
"""


@pytest.fixture
def make_finding():
    """Factory for consolidated findings with sensible defaults."""
    from unslop.models.findings import Finding, FindingType, FixAction, Location, Risk
    from unslop.safety import classify, default_action

    def _make(
        finding_id: int = 1,
        finding_type: FindingType = FindingType.AI_VOCABULARY_HIGH,
        path: str = "docs/guide.md",
        line: int = 1,
        original_text: str = "utilize",
        suggestion: str = "use",
        risk: Risk = Risk.MEDIUM,
        fix_action: FixAction | None = None,
        column: int | None = None,
        fix_safety=None,
    ) -> Finding:
        return Finding(
            id=finding_id,
            type=finding_type,
            category=finding_type.category,
            location=Location(path, line),
            original_text=original_text,
            suggestion=suggestion,
            risk=risk,
            fix_safety=fix_safety or classify(finding_type),
            fix_action=fix_action or default_action(finding_type),
            column=column,
        )

    return _make


@pytest.fixture
def make_report():
    """Factory for reports around a list of findings."""
    from unslop.models.report import Report, Scope

    def _make(findings, fingerprint: str | None = "abc123") -> Report:
        return Report(
            created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            source_fingerprint=fingerprint,
            scope=Scope.CHANGED,
            files_scanned=1,
            items_scanned=0,
            findings=list(findings),
        )

    return _make


@pytest.fixture
def guide_workspace(tmp_path: Path) -> Path:
    """Working tree with docs/guide.md holding findings on lines 10 and 25."""
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "guide.md").write_text(SAMPLE_GUIDE)
    return tmp_path


@pytest.fixture
def guide_findings(make_finding):
    """The two safe findings of docs/guide.md, in report order."""
    from unslop.models.findings import FindingType

    return [
        make_finding(
            finding_id=1,
            finding_type=FindingType.FILLER_PHRASE,
            line=10,
            original_text="It's worth noting that ",
            suggestion="",
            column=0,
        ),
        make_finding(
            finding_id=2,
            finding_type=FindingType.AI_VOCABULARY_HIGH,
            line=25,
            original_text="utilize",
            suggestion="use",
            column=3,
        ),
    ]


@pytest.fixture
def mock_repository() -> MagicMock:
    """Clean git repository at revision abc123."""
    from unslop.vcs.git import GitRepository

    repository = MagicMock(spec=GitRepository)
    repository.is_repo = True
    repository.fingerprint.return_value = "abc123"
    repository.dirty_paths.return_value = []
    repository.changed_files.return_value = []
    repository.tracked_files.return_value = []
    repository.commit_messages.return_value = []
    return repository


@pytest.fixture
def sample_guide() -> str:
    """Content of docs/guide.md in guide_workspace."""
    return SAMPLE_GUIDE


@pytest.fixture
def sample_guide_lines() -> list[str]:
    return list(SAMPLE_GUIDE_LINES)


@pytest.fixture
def sample_python() -> str:
    """A Python module with one tautological comment on line 7."""
    return SAMPLE_PYTHON


@pytest.fixture
def sample_readme() -> str:
    """Markdown with slop inside and outside a fenced block."""
    return SAMPLE_README
