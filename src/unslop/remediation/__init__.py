"""Remediation components for unslop."""

from unslop.remediation.decisions import (
    ConsoleDecisionProvider,
    DecisionProvider,
    InvalidTransitionError,
    ReviewSession,
    ScriptedDecisionProvider,
    load_decisions,
)
from unslop.remediation.remediator import DirtyWorkingTreeError, Remediator
from unslop.remediation.validator import RollbackGuard, ValidationResult, Validator

__all__ = [
    "ConsoleDecisionProvider",
    "DecisionProvider",
    "DirtyWorkingTreeError",
    "InvalidTransitionError",
    "Remediator",
    "ReviewSession",
    "RollbackGuard",
    "ScriptedDecisionProvider",
    "ValidationResult",
    "Validator",
    "load_decisions",
]
