"""
Main verification pipeline — orchestrates the full workflow.

Flow:
  ┌──────────────┐
  │ Upload bytes │
  │ + two names  │
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │ Name check   │   ← Fail fast, before storage or network
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │ Scoped store │   ← Temp file, released on EVERY exit path
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │  Extractor   │   ← PDF / Word text, dispatch by media type
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │ Prompt + LLM │   ← One call, fixed timeout, no retries
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │    Parser    │   ← Untrusted text → strict ModelAssessment
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │   Decision   │   ← Pure policy, ordered reasons
  └──────────────┘

Design principles:
  - Any stage failure short-circuits the rest but never skips release.
  - The pipeline keeps no per-request state, so one instance serves many
    concurrent requests.
  - The uploaded bytes are SHA-256 hashed for the audit trail; the content
    itself is never kept.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Optional

from .config import Settings, get_settings
from .decision import decide
from .exceptions import InvalidRequest
from .extractors import extract_text
from .llm_client import UnderstandingServiceClient
from .models import VerificationRequest, VerificationVerdict
from .parser import parse_assessment
from .prompt import build_prompt
from .storage import TempDocumentStore

logger = logging.getLogger(__name__)


class LeaseVerificationPipeline:
    """Orchestrates lease document verification.

    Usage:
        pipeline = LeaseVerificationPipeline()
        verdict = pipeline.verify(pdf_bytes, "application/pdf", "Alice Smith", "Bob Jones")
        if not verdict.is_valid:
            print(verdict.primary_reason)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[TempDocumentStore] = None,
        client: Optional[UnderstandingServiceClient] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store or TempDocumentStore(self.settings.DOCUMENT_TEMP_DIR)
        self.client = client or UnderstandingServiceClient.from_settings(self.settings)

    def verify(
        self,
        document_bytes: bytes,
        declared_media_type: Optional[str],
        claimed_owner_name: Optional[str],
        claimed_occupant_name: Optional[str],
    ) -> VerificationVerdict:
        """Verify one uploaded lease document against the claimed names.

        Raises:
            InvalidRequest, UnsupportedMediaType, ExtractionFailed,
            StorageUnavailable, TransportError, ServiceError,
            MalformedAssessment: from the stage that failed.
        """
        # Checked before the request model is built: None must surface as a typed error
        self._check_names(claimed_owner_name, claimed_occupant_name)
        if not isinstance(document_bytes, (bytes, bytearray)):
            raise InvalidRequest(
                "Document content is missing",
                details={"missing_fields": ["document_bytes"]},
            )

        request = VerificationRequest(
            document_bytes=bytes(document_bytes),
            # an absent type goes through the allow-list and is rejected there
            declared_media_type=declared_media_type if isinstance(declared_media_type, str) else "",
            claimed_owner_name=claimed_owner_name,
            claimed_occupant_name=claimed_occupant_name,
        )
        return self.run(request)

    def run(self, request: VerificationRequest) -> VerificationVerdict:
        """Execute the full pipeline for one request."""
        # ── Step 0: Validate claimed names ──────────────────────────
        self._check_names(request.claimed_owner_name, request.claimed_occupant_name)

        doc_hash = hashlib.sha256(request.document_bytes).hexdigest()
        logger.info(
            "Verifying %s document (%d bytes)",
            request.declared_media_type,
            len(request.document_bytes),
        )

        # ── Steps 1-6 run inside the scoped document handle ─────────
        with self.store.scoped(request.document_bytes, request.declared_media_type) as handle:
            text = extract_text(handle, request.declared_media_type)

            prompt = build_prompt(
                text, request.claimed_owner_name, request.claimed_occupant_name
            )
            raw_response = self.client.invoke(prompt)

            assessment = parse_assessment(raw_response)
            verdict = decide(assessment, self.settings.MIN_CONFIDENCE_SCORE)

        verdict = verdict.model_copy(update={"document_sha256": doc_hash})

        if verdict.is_valid:
            logger.info("Lease verified (confidence %d)", verdict.confidence_score)
        else:
            logger.info(
                "Lease rejected (confidence %d, %d reason(s))",
                verdict.confidence_score,
                len(verdict.failure_reasons),
            )
        return verdict

    # ─── Request Validation ─────────────────────────────────────────

    @staticmethod
    def _check_names(owner: object, occupant: object) -> None:
        missing = [
            field_name
            for field_name, value in (
                ("claimed_owner_name", owner),
                ("claimed_occupant_name", occupant),
            )
            if not isinstance(value, str) or not value.strip()
        ]
        if missing:
            raise InvalidRequest(
                f"Required name(s) missing: {', '.join(missing)}",
                details={"missing_fields": missing},
            )
