"""Scanner pool for parallel partition scanning."""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from unslop.config import MAX_CONCURRENCY_CAP
from unslop.detectors.base import Detector
from unslop.models.artifacts import ArtifactKind
from unslop.models.findings import DetectedFinding
from unslop.models.report import PartitionFailure
from unslop.scanning.partitioner import Partitioning

logger = logging.getLogger(__name__)


@dataclass
class PartitionResult:
    """Findings returned by one completed worker, in its emission order."""

    kind: ArtifactKind
    findings: list[DetectedFinding]


@dataclass
class ScanOutcome:
    """Joined results of all workers."""

    results: list[PartitionResult] = field(default_factory=list)
    failures: list[PartitionFailure] = field(default_factory=list)

    @property
    def finding_lists(self) -> list[list[DetectedFinding]]:
        return [r.findings for r in self.results]

    @property
    def all_failed(self) -> bool:
        """Check if every worker failed."""
        return not self.results and bool(self.failures)


class ScannerPool:
    """Runs one detector per partition concurrently (fork-join)."""

    def __init__(
        self,
        detectors: dict[ArtifactKind, Detector],
        max_concurrency: int = 4,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the pool.

        Args:
            detectors: Detector to run for each partition kind
            max_concurrency: Maximum workers running at once
            timeout_seconds: Optional budget for the whole join
        """
        self.detectors = detectors
        self.max_concurrency = max_concurrency
        self.timeout_seconds = timeout_seconds

    async def scan(self, partitioning: Partitioning) -> ScanOutcome:
        """Scan every non-empty partition and join the results.

        A failing worker never cancels its siblings; its partition is
        reported as failed and every other partition's findings are kept.
        When the time budget runs out, only the unfinished partitions fail.

        Args:
            partitioning: Partitioned scan targets

        Returns:
            Results ordered by partition kind, plus failures
        """
        outcome = ScanOutcome()
        work: dict[ArtifactKind, tuple[Detector, list[str]]] = {}

        for kind, targets in partitioning.partitions.items():
            if not targets:
                continue
            detector = self.detectors.get(kind)
            if detector is None:
                outcome.failures.append(PartitionFailure(kind.value, "no detector configured"))
                logger.error(f"No detector configured for {kind.value} partition")
                continue
            work[kind] = (detector, targets)

        if not work:
            return outcome

        concurrency = max(1, min(len(work), self.max_concurrency, MAX_CONCURRENCY_CAP))
        semaphore = asyncio.Semaphore(concurrency)
        logger.info(f"Starting scan of {len(work)} partitions ({concurrency} concurrent)")

        tasks = {
            kind: asyncio.create_task(
                self._run_worker(semaphore, detector, targets),
                name=f"scan-{kind.value}",
            )
            for kind, (detector, targets) in work.items()
        }

        _, pending = await asyncio.wait(tasks.values(), timeout=self.timeout_seconds)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for kind in ArtifactKind:
            task = tasks.get(kind)
            if task is None:
                continue
            if task in pending:
                outcome.failures.append(PartitionFailure(kind.value, "timeout"))
                logger.warning(f"Scan of {kind.value} partition timed out")
            elif task.exception() is not None:
                error = task.exception()
                outcome.failures.append(PartitionFailure(kind.value, f"{type(error).__name__}: {error}"))
                logger.error(f"Scan of {kind.value} partition failed: {error}")
            else:
                findings, elapsed_ms = task.result()
                outcome.results.append(PartitionResult(kind, findings))
                logger.info(f"Partition {kind.value} completed: {len(findings)} findings in {elapsed_ms}ms")

        logger.info(
            f"Scan complete: {len(outcome.results)} partitions succeeded, "
            f"{len(outcome.failures)} failed"
        )
        return outcome

    async def _run_worker(
        self,
        semaphore: asyncio.Semaphore,
        detector: Detector,
        targets: list[str],
    ) -> tuple[list[DetectedFinding], int]:
        """Run a single detector once a concurrency slot is free.

        Returns:
            The detector's findings and the time it took in milliseconds
        """
        async with semaphore:
            start_time = time.monotonic()
            findings = await detector.scan(targets)
            return findings, int((time.monotonic() - start_time) * 1000)
