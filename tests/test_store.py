"""Tests for the report store."""

from unittest.mock import patch

import pytest


class TestReportStore:
    """Tests for ReportStore."""

    def test_write_then_read(self, tmp_path, make_finding, make_report):
        """Test persisting and loading a report."""
        from unslop.store import ReportStore

        store = ReportStore(tmp_path / ".unslop" / "report.json")
        report = make_report([make_finding(1), make_finding(2, line=4)])

        store.write(report)
        loaded = store.read()

        assert store.exists()
        assert [f.id for f in loaded.findings] == [1, 2]
        assert loaded.source_fingerprint == "abc123"
        assert loaded.created_at == report.created_at

    def test_write_leaves_no_temp_files(self, tmp_path, make_report):
        """Test that the temporary file is renamed over the target."""
        from unslop.store import ReportStore

        store = ReportStore(tmp_path / "report.json")
        store.write(make_report([]))

        assert [p.name for p in tmp_path.iterdir()] == ["report.json"]

    def test_failed_write_keeps_previous_report(self, tmp_path, make_finding, make_report):
        """Test that a crash during write never leaves a partial document."""
        from unslop.store import ReportStore

        store = ReportStore(tmp_path / "report.json")
        store.write(make_report([make_finding(1)]))

        with patch("unslop.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.write(make_report([]))

        assert len(store.read().findings) == 1
        assert [p.name for p in tmp_path.iterdir()] == ["report.json"]

    def test_read_missing(self, tmp_path):
        """Test reading before any scan."""
        from unslop.store import ReportNotFoundError, ReportStore

        with pytest.raises(ReportNotFoundError):
            ReportStore(tmp_path / "report.json").read()

    def test_read_invalid_json(self, tmp_path):
        """Test that a corrupt document is a format error."""
        from unslop.store import ReportFormatError, ReportStore

        path = tmp_path / "report.json"
        path.write_text("{truncated")

        with pytest.raises(ReportFormatError):
            ReportStore(path).read()

    def test_read_malformed_report(self, tmp_path):
        """Test that valid JSON without report fields is a format error."""
        from unslop.store import ReportFormatError, ReportStore

        path = tmp_path / "report.json"
        path.write_text('{"findings": []}')

        with pytest.raises(ReportFormatError):
            ReportStore(path).read()

    def test_delete(self, tmp_path, make_report):
        """Test deleting the report, including when it is already gone."""
        from unslop.store import ReportStore

        store = ReportStore(tmp_path / "report.json")
        store.write(make_report([]))

        store.delete()
        store.delete()

        assert not store.exists()


class TestIsStale:
    """Tests for is_stale."""

    def test_matching_fingerprint(self, make_report):
        from unslop.store import is_stale

        assert not is_stale(make_report([], fingerprint="abc123"), "abc123")

    def test_different_fingerprint(self, make_report):
        from unslop.store import is_stale

        assert is_stale(make_report([], fingerprint="abc123"), "def456")
        assert is_stale(make_report([], fingerprint=None), "abc123")
