"""Scanning components for unslop."""

from unslop.scanning.consolidator import Consolidator, load_suppression_set
from unslop.scanning.partitioner import EmptyScopeError, Partitioning, partition_artifacts
from unslop.scanning.pool import ScannerPool, ScanOutcome

__all__ = [
    "Consolidator",
    "EmptyScopeError",
    "Partitioning",
    "ScanOutcome",
    "ScannerPool",
    "load_suppression_set",
    "partition_artifacts",
]
