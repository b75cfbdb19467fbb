"""Split scan candidates into disjoint partitions by content kind."""

import fnmatch
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from unslop.models.artifacts import COMMENT_MARKERS, PROSE_EXTENSIONS, ArtifactKind
from unslop.models.findings import is_synthetic_path
from unslop.models.report import Scope

logger = logging.getLogger(__name__)


class EmptyScopeError(Exception):
    """Raised when no candidate survives partitioning."""

    pass


@dataclass
class Partitioning:
    """Partitioned scan targets. Every target appears in exactly one partition."""

    scope: Scope
    partitions: dict[ArtifactKind, list[str]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(len(paths) for paths in self.partitions.values())

    @property
    def files_count(self) -> int:
        return sum(
            len(paths) for kind, paths in self.partitions.items() if kind != ArtifactKind.METADATA
        )

    @property
    def items_count(self) -> int:
        return len(self.partitions.get(ArtifactKind.METADATA, []))


def artifact_kind(path: str) -> ArtifactKind | None:
    """Determine the content kind of a scan target.

    Args:
        path: Repository-relative path or synthetic artifact id

    Returns:
        The kind, or None when the target is not scannable
    """
    if is_synthetic_path(path):
        return ArtifactKind.METADATA

    suffix = Path(path).suffix.lower()
    if suffix in PROSE_EXTENSIONS:
        return ArtifactKind.PROSE
    if suffix in COMMENT_MARKERS:
        return ArtifactKind.CODE
    return None


def partition_artifacts(
    candidates: Iterable[str],
    scope: Scope,
    root: Path | None = None,
    ignore_patterns: list[str] | None = None,
) -> Partitioning:
    """Group candidates by content kind.

    Unrecognized kinds, ignored paths and files missing on disk (deleted by
    the change being scanned) are dropped without error.

    Args:
        candidates: Repository-relative paths and synthetic artifact ids
        scope: Scope the candidates were gathered for
        root: Working tree root used to check that files exist
        ignore_patterns: fnmatch patterns of paths to skip

    Returns:
        Partitioning with empty partitions omitted

    Raises:
        EmptyScopeError: If no candidate remains
    """
    ignore_patterns = ignore_patterns or []
    grouped: dict[ArtifactKind, list[str]] = {}
    seen: set[str] = set()

    for path in candidates:
        if path in seen:
            continue
        seen.add(path)

        kind = artifact_kind(path)
        if kind is None:
            logger.debug(f"Skipping {path}: unrecognized kind")
            continue
        if kind != ArtifactKind.METADATA:
            if any(fnmatch.fnmatch(path, pattern) for pattern in ignore_patterns):
                logger.debug(f"Skipping {path}: ignored")
                continue
            if root is not None and not (root / path).is_file():
                logger.debug(f"Skipping {path}: not on disk")
                continue

        grouped.setdefault(kind, []).append(path)

    if not grouped:
        raise EmptyScopeError(f"Nothing to scan in {scope.value} scope")

    partitions = {kind: grouped[kind] for kind in ArtifactKind if kind in grouped}
    logger.info(
        "Partitioned scan targets: "
        + ", ".join(f"{kind.value}={len(paths)}" for kind, paths in partitions.items())
    )
    return Partitioning(scope=scope, partitions=partitions)
