"""Durable storage for the consolidated report."""

import json
import logging
import os
import tempfile
from pathlib import Path

from unslop.models.report import Report

logger = logging.getLogger(__name__)


class ReportNotFoundError(Exception):
    """Raised when no report has been written yet."""

    pass


class ReportFormatError(Exception):
    """Raised when the stored report cannot be parsed."""

    pass


class ReportStore:
    """Reads and writes the report file.

    Writes go to a temporary file in the same directory which is then renamed
    over the target, so a reader never observes a partial document. There is
    no locking; one active session at a time is assumed.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the report file
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def write(self, report: Report) -> None:
        """Persist a report atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info(f"Wrote report with {len(report.findings)} findings to {self.path}")

    def read(self) -> Report:
        """Load the last written report.

        Raises:
            ReportNotFoundError: If no report exists
            ReportFormatError: If the file is not a valid report
        """
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ReportNotFoundError(f"No report at {self.path}") from None
        except ValueError as e:
            raise ReportFormatError(f"Report {self.path} is not valid JSON: {e}") from e

        try:
            return Report.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ReportFormatError(f"Report {self.path} is malformed: {e}") from e

    def delete(self) -> None:
        """Remove the persisted report."""
        self.path.unlink(missing_ok=True)
        logger.info(f"Deleted report {self.path}")


def is_stale(report: Report, current_fingerprint: str | None) -> bool:
    """Check whether the report was computed against a different revision.

    Staleness is advisory; callers decide whether to warn, rescan or proceed.
    """
    return report.source_fingerprint != current_fingerprint
