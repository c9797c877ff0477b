"""
Deterministic decision engine — the pass/fail policy.

These checks run PURE CODE over the parsed assessment. They never call the
model and never reinterpret its answers; they only apply the policy.

Each check:
  - Takes a ModelAssessment
  - Returns a human-readable reason, or None when the check passes
  - Is independently testable

decide() runs every check in priority order, so failure_reasons[0] is always
the reason a user should see first.
"""

from __future__ import annotations

from typing import Optional

from .config import DEFAULT_MIN_CONFIDENCE_SCORE
from .models import ModelAssessment, VerificationVerdict

# ─── Reasons (in priority order) ─────────────────────────────────────

OWNER_MISMATCH_REASON = "owner name does not match the account holder."
OCCUPANT_MISMATCH_REASON = "occupant name does not match the name entered."
LOW_CONFIDENCE_REASON = (
    "document does not appear to be a valid lease agreement, or quality is too low."
)
NOT_A_LEASE_REASON = "not recognized as a lease/rental agreement"


# ─── Individual Checks ───────────────────────────────────────────────


def check_owner_match(assessment: ModelAssessment) -> Optional[str]:
    if not assessment.owner_name_match:
        return OWNER_MISMATCH_REASON
    return None


def check_occupant_match(assessment: ModelAssessment) -> Optional[str]:
    if not assessment.occupant_name_match:
        return OCCUPANT_MISMATCH_REASON
    return None


def check_confidence(
    assessment: ModelAssessment, min_confidence: int = DEFAULT_MIN_CONFIDENCE_SCORE
) -> Optional[str]:
    """Strictly greater than the threshold passes; equal to it fails."""
    if assessment.confidence_score <= min_confidence:
        return LOW_CONFIDENCE_REASON
    return None


def check_is_lease(assessment: ModelAssessment) -> Optional[str]:
    if not assessment.is_lease_document:
        return NOT_A_LEASE_REASON
    return None


# ─── Orchestrator ────────────────────────────────────────────────────


def collect_failure_reasons(
    assessment: ModelAssessment, min_confidence: int = DEFAULT_MIN_CONFIDENCE_SCORE
) -> list[str]:
    """Run ALL checks and collect every applicable reason, in priority order."""
    results = [
        check_owner_match(assessment),
        check_occupant_match(assessment),
        check_confidence(assessment, min_confidence),
        check_is_lease(assessment),
    ]
    return [reason for reason in results if reason is not None]


def decide(
    assessment: ModelAssessment, min_confidence: int = DEFAULT_MIN_CONFIDENCE_SCORE
) -> VerificationVerdict:
    """Apply the pass/fail policy and build the verdict."""
    reasons = collect_failure_reasons(assessment, min_confidence)

    is_valid = (
        assessment.is_lease_document
        and assessment.owner_name_match
        and assessment.occupant_name_match
        and assessment.confidence_score > min_confidence
    )

    return VerificationVerdict(
        is_valid=is_valid,
        owner_match=assessment.owner_name_match,
        occupant_match=assessment.occupant_name_match,
        confidence_score=assessment.confidence_score,
        extracted_owner_name=assessment.extracted_owner_name,
        extracted_occupant_name=assessment.extracted_occupant_name,
        document_type_label=assessment.document_type_label,
        failure_reasons=reasons,
    )
