"""Fix safety classification.

Classification depends only on the finding type, never on file content, so it
can run during consolidation and again at remediation time without rescanning.
"""

from unslop.models.findings import FindingType, FixAction, FixSafety

SAFETY_TABLE: dict[FindingType, FixSafety] = {
    FindingType.FILLER_PHRASE: FixSafety.SAFE,
    FindingType.HEDGING_PHRASE: FixSafety.NEEDS_REVIEW,
    FindingType.AI_VOCABULARY_HIGH: FixSafety.SAFE,
    FindingType.AI_VOCABULARY_MEDIUM: FixSafety.NEEDS_REVIEW,
    FindingType.EMOJI_HEADING: FixSafety.SAFE,
    FindingType.EXCESSIVE_BOLD: FixSafety.NEEDS_REVIEW,
    FindingType.EM_DASH_OVERUSE: FixSafety.NEEDS_REVIEW,
    FindingType.SYCOPHANTIC_OPENER: FixSafety.SAFE,
    FindingType.CHATBOT_CLOSER: FixSafety.SAFE,
    FindingType.KNOWLEDGE_CUTOFF: FixSafety.NEEDS_REVIEW,
    FindingType.PROMOTIONAL_LANGUAGE: FixSafety.NEEDS_REVIEW,
    FindingType.SIGNIFICANCE_INFLATION: FixSafety.NEEDS_REVIEW,
    FindingType.VAGUE_ATTRIBUTION: FixSafety.NEEDS_REVIEW,
    FindingType.TAUTOLOGICAL_ANNOTATION: FixSafety.SAFE,
    FindingType.GENERATED_MARKER: FixSafety.SAFE,
    FindingType.NARRATING_COMMENT: FixSafety.NEEDS_REVIEW,
}

DEFAULT_ACTIONS: dict[FindingType, FixAction] = {
    FindingType.FILLER_PHRASE: FixAction.DELETE,
    FindingType.HEDGING_PHRASE: FixAction.REWRITE,
    FindingType.AI_VOCABULARY_HIGH: FixAction.REWRITE,
    FindingType.AI_VOCABULARY_MEDIUM: FixAction.REWRITE,
    FindingType.EMOJI_HEADING: FixAction.DELETE,
    FindingType.EXCESSIVE_BOLD: FixAction.REWRITE,
    FindingType.EM_DASH_OVERUSE: FixAction.REWRITE,
    FindingType.SYCOPHANTIC_OPENER: FixAction.DELETE,
    FindingType.CHATBOT_CLOSER: FixAction.DELETE,
    FindingType.KNOWLEDGE_CUTOFF: FixAction.DELETE,
    FindingType.PROMOTIONAL_LANGUAGE: FixAction.REWRITE,
    FindingType.SIGNIFICANCE_INFLATION: FixAction.REWRITE,
    FindingType.VAGUE_ATTRIBUTION: FixAction.REWRITE,
    FindingType.TAUTOLOGICAL_ANNOTATION: FixAction.DELETE,
    FindingType.GENERATED_MARKER: FixAction.DELETE,
    FindingType.NARRATING_COMMENT: FixAction.DELETE,
}


def classify(finding_type: FindingType | str) -> FixSafety:
    """Classify a finding type as safe or needs-review.

    Args:
        finding_type: A known type, or a raw type tag from an external report

    Returns:
        The fix safety; unrecognized tags are NEEDS_REVIEW
    """
    if isinstance(finding_type, str):
        try:
            finding_type = FindingType(finding_type)
        except ValueError:
            return FixSafety.NEEDS_REVIEW
    return SAFETY_TABLE.get(finding_type, FixSafety.NEEDS_REVIEW)


def default_action(finding_type: FindingType) -> FixAction:
    """Fix action a rule of this type produces unless it says otherwise."""
    return DEFAULT_ACTIONS[finding_type]
