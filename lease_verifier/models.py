"""
Pydantic models for lease verification — strict typing at every boundary.

The assessment model is the line between untrusted model output and trusted
data. It runs in strict mode: a boolean sent as "true" or a score sent as
"92" fails loudly instead of being coerced.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ─── Media Types ────────────────────────────────────────────────────


class MediaType(str, Enum):
    """Document formats the pipeline can read."""

    PDF = "application/pdf"
    WORD_LEGACY = "application/msword"
    WORD_MODERN = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


# ─── Request ────────────────────────────────────────────────────────


class VerificationRequest(BaseModel):
    """One verification call. Lives only for the duration of that call."""

    document_bytes: bytes = Field(repr=False)
    declared_media_type: str
    claimed_owner_name: str
    claimed_occupant_name: str


# ─── Model Assessment ───────────────────────────────────────────────


class ModelAssessment(BaseModel):
    """The structured record recovered from the understanding service reply.

    Every field except the two extracted names is required. Nothing is
    defaulted: a missing match flag or score means the reply is unusable.
    """

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    is_lease_document: bool
    owner_name_match: bool
    occupant_name_match: bool
    confidence_score: int = Field(ge=0, le=100)
    extracted_owner_name: Optional[str] = None
    extracted_occupant_name: Optional[str] = None
    document_type_label: str


# ─── Verdict ────────────────────────────────────────────────────────


class VerificationVerdict(BaseModel):
    """The final output of the pipeline. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    owner_match: bool
    occupant_match: bool
    confidence_score: int
    extracted_owner_name: Optional[str] = None
    extracted_occupant_name: Optional[str] = None
    document_type_label: str
    failure_reasons: list[str] = Field(default_factory=list)
    document_sha256: str = ""  # SHA-256 of the uploaded bytes for audit trail

    @property
    def primary_reason(self) -> Optional[str]:
        """The reason a user should see first, if the document failed."""
        return self.failure_reasons[0] if self.failure_reasons else None
