"""Data models for unslop."""

from unslop.models.findings import (
    Category,
    DetectedFinding,
    Finding,
    FindingSummary,
    FindingType,
    FixAction,
    FixSafety,
    Location,
    Risk,
)
from unslop.models.remediation import (
    Decision,
    DecisionKind,
    FileFailure,
    MutationPlan,
    PlannedEdit,
    RemediationMode,
    RemediationResult,
    ReviewState,
)
from unslop.models.report import PartitionFailure, Report, Scope

__all__ = [
    "Category",
    "Decision",
    "DecisionKind",
    "DetectedFinding",
    "FileFailure",
    "Finding",
    "FindingSummary",
    "FindingType",
    "FixAction",
    "FixSafety",
    "Location",
    "MutationPlan",
    "PartitionFailure",
    "PlannedEdit",
    "RemediationMode",
    "RemediationResult",
    "Report",
    "ReviewState",
    "Risk",
    "Scope",
]
