"""Tests for the scanner pool."""

import asyncio
from unittest.mock import MagicMock

import pytest


def _detected(path: str, line: int = 1):
    from unslop.models.findings import DetectedFinding, FindingType, FixAction, Location, Risk

    return DetectedFinding(
        type=FindingType.AI_VOCABULARY_HIGH,
        location=Location(path, line),
        original_text="utilize",
        suggestion="use",
        risk=Risk.MEDIUM,
        fix_action=FixAction.REWRITE,
    )


def _detector(scan):
    detector = MagicMock()
    detector.scan = scan
    return detector


def _partitioning(**partitions):
    from unslop.models.artifacts import ArtifactKind
    from unslop.models.report import Scope
    from unslop.scanning.partitioner import Partitioning

    return Partitioning(
        scope=Scope.CHANGED,
        partitions={ArtifactKind(kind): targets for kind, targets in partitions.items()},
    )


class TestScannerPool:
    """Tests for ScannerPool."""

    @pytest.mark.asyncio
    async def test_parallel_execution(self):
        """Test that partitions are scanned concurrently."""
        from unslop.models.artifacts import ArtifactKind
        from unslop.scanning.pool import ScannerPool

        async def slow_scan(targets):
            await asyncio.sleep(0.1)
            return [_detected(t) for t in targets]

        pool = ScannerPool(
            {
                ArtifactKind.PROSE: _detector(slow_scan),
                ArtifactKind.CODE: _detector(slow_scan),
            }
        )

        loop = asyncio.get_running_loop()
        start = loop.time()
        outcome = await pool.scan(_partitioning(prose=["a.md"], code=["b.py"]))
        elapsed = loop.time() - start

        assert sum(len(f) for f in outcome.finding_lists) == 2
        assert elapsed < 0.18

    @pytest.mark.asyncio
    async def test_results_in_partition_order(self):
        """Test that join order does not depend on completion order."""
        from unslop.models.artifacts import ArtifactKind
        from unslop.scanning.pool import ScannerPool

        async def slow_prose(targets):
            await asyncio.sleep(0.05)
            return [_detected("a.md")]

        async def fast_code(targets):
            return [_detected("b.py")]

        pool = ScannerPool(
            {ArtifactKind.PROSE: _detector(slow_prose), ArtifactKind.CODE: _detector(fast_code)}
        )
        outcome = await pool.scan(_partitioning(prose=["a.md"], code=["b.py"]))

        assert [r.kind for r in outcome.results] == [ArtifactKind.PROSE, ArtifactKind.CODE]

    @pytest.mark.asyncio
    async def test_failure_does_not_drop_siblings(self):
        """Test that one failing worker leaves other results intact."""
        from unslop.models.artifacts import ArtifactKind
        from unslop.scanning.pool import ScannerPool

        async def broken(targets):
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

        async def healthy(targets):
            return [_detected("b.py")]

        pool = ScannerPool({ArtifactKind.PROSE: _detector(broken), ArtifactKind.CODE: _detector(healthy)})
        outcome = await pool.scan(_partitioning(prose=["a.md"], code=["b.py"]))

        assert sum(len(f) for f in outcome.finding_lists) == 1
        assert len(outcome.failures) == 1
        assert outcome.failures[0].partition == "prose"
        assert "UnicodeDecodeError" in outcome.failures[0].reason
        assert not outcome.all_failed

    @pytest.mark.asyncio
    async def test_timeout_fails_only_unfinished(self):
        """Test that the time budget marks only pending partitions as failed."""
        from unslop.models.artifacts import ArtifactKind
        from unslop.scanning.pool import ScannerPool

        async def hang(targets):
            await asyncio.sleep(10)
            return []

        async def quick(targets):
            return [_detected("a.md")]

        pool = ScannerPool(
            {ArtifactKind.PROSE: _detector(quick), ArtifactKind.METADATA: _detector(hang)},
            timeout_seconds=0.1,
        )
        outcome = await pool.scan(_partitioning(prose=["a.md"], metadata=["commit:0123456789ab"]))

        assert sum(len(f) for f in outcome.finding_lists) == 1
        assert [(f.partition, f.reason) for f in outcome.failures] == [("metadata", "timeout")]

    @pytest.mark.asyncio
    async def test_concurrency_limit(self):
        """Test that no more than max_concurrency workers run at once."""
        from unslop.models.artifacts import ArtifactKind
        from unslop.scanning.pool import ScannerPool

        running = 0
        peak = 0

        async def tracked(targets):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.02)
            running -= 1
            return []

        pool = ScannerPool({kind: _detector(tracked) for kind in ArtifactKind}, max_concurrency=1)
        await pool.scan(_partitioning(prose=["a.md"], code=["b.py"], metadata=["commit:0123456789ab"]))

        assert peak == 1

    @pytest.mark.asyncio
    async def test_missing_detector(self):
        """Test that a partition without a detector is recorded as failed."""
        from unslop.scanning.pool import ScannerPool

        outcome = await ScannerPool({}).scan(_partitioning(prose=["a.md"]))

        assert outcome.all_failed
        assert outcome.failures[0].reason == "no detector configured"
