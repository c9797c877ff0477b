"""
Lease Verifier — FastAPI Server
================================

RESTful API for verifying uploaded rental agreements.

Endpoints:
    POST /verify            Upload a lease document plus owner and occupant names
    GET  /health            Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
    http://localhost:8000/redoc            # ReDoc (alternative)

Limits:
    The pipeline runs in a worker thread. If the client disconnects, the
    thread is not cancelled: the in-flight service call runs until it returns
    or hits LLM_TIMEOUT_SECONDS, and the upload is deleted after that.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from lease_verifier import __version__
from lease_verifier.exceptions import (
    VERIFICATION_FAILED_MESSAGE,
    VERIFICATION_PASSED_MESSAGE,
    LeaseVerificationError,
)
from lease_verifier.models import VerificationVerdict
from lease_verifier.pipeline import LeaseVerificationPipeline

load_dotenv()

logger = logging.getLogger(__name__)


# ─── Application Lifespan ────────────────────────────────────────────

_pipeline: LeaseVerificationPipeline | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline (settings, store, service client) on startup."""
    global _pipeline  # noqa: PLW0603
    _pipeline = LeaseVerificationPipeline()
    logging.basicConfig(level=_pipeline.settings.LOG_LEVEL)
    yield
    _pipeline = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="Lease Verifier API",
    description=(
        "Verifies that an uploaded rental agreement is a genuine lease and "
        "that the claimed owner and occupant appear in it. Uploaded documents "
        "are deleted before the response is sent."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Response Schemas ────────────────────────────────────────────────


class VerifyResponse(BaseModel):
    """Verdict returned by the API."""

    is_valid: bool
    outcome: str = Field(description="User-facing summary of the verdict")
    primary_reason: Optional[str] = None
    failure_reasons: list[str]
    owner_match: bool
    occupant_match: bool
    confidence_score: int
    extracted_owner_name: Optional[str] = None
    extracted_occupant_name: Optional[str] = None
    document_type_label: str
    document_sha256: str = Field(description="SHA-256 hash of the uploaded document")

    model_config = {"json_schema_extra": {"example": {
        "is_valid": False,
        "outcome": VERIFICATION_FAILED_MESSAGE,
        "primary_reason": "occupant name does not match the name entered.",
        "failure_reasons": ["occupant name does not match the name entered."],
        "owner_match": True,
        "occupant_match": False,
        "confidence_score": 80,
        "extracted_owner_name": "Alice Smith",
        "extracted_occupant_name": "Robert Jonas",
        "document_type_label": "residential lease",
        "document_sha256": "a1b2c3d4...",
    }}}


class ErrorResponse(BaseModel):
    code: str
    category: str
    message: str
    detail: str


class HealthResponse(BaseModel):
    status: str
    version: str
    model: str
    timeout_seconds: float


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_pipeline() -> LeaseVerificationPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


def _build_response(verdict: VerificationVerdict) -> VerifyResponse:
    """Convert the internal verdict to the API response schema."""
    return VerifyResponse(
        is_valid=verdict.is_valid,
        outcome=VERIFICATION_PASSED_MESSAGE if verdict.is_valid else VERIFICATION_FAILED_MESSAGE,
        primary_reason=verdict.primary_reason,
        failure_reasons=list(verdict.failure_reasons),
        owner_match=verdict.owner_match,
        occupant_match=verdict.occupant_match,
        confidence_score=verdict.confidence_score,
        extracted_owner_name=verdict.extracted_owner_name,
        extracted_occupant_name=verdict.extracted_occupant_name,
        document_type_label=verdict.document_type_label,
        document_sha256=verdict.document_sha256,
    )


@app.exception_handler(LeaseVerificationError)
async def _handle_verification_error(
    request: Request, exc: LeaseVerificationError
) -> JSONResponse:
    logger.warning("Verification failed on %s: %s (%s)", request.url.path, exc.code, exc)
    body = ErrorResponse(
        code=exc.code,
        category=exc.category.value,
        message=exc.user_message,
        detail=str(exc),
    )
    return JSONResponse(status_code=exc.http_status, content=body.model_dump())


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/verify",
    summary="Verify an uploaded lease document",
    tags=["Verification"],
    responses={
        415: {"model": ErrorResponse, "description": "Not a PDF or Word document"},
        422: {"model": ErrorResponse, "description": "Missing names or unreadable document"},
        502: {"model": ErrorResponse, "description": "Verification backend returned an error"},
        503: {"model": ErrorResponse, "description": "Verification backend unavailable"},
    },
)
async def verify_lease(
    file: UploadFile,
    owner_name: str = Form(...),
    occupant_name: str = Form(...),
) -> VerifyResponse:
    """Run the verification pipeline on an uploaded PDF or Word document.

    Returns a verdict with:
    - **is_valid**: `true` if the document is a lease naming both people
    - **failure_reasons**: every reason it failed, most important first
    - **document_sha256**: SHA-256 of the upload for audit trail
    """
    pipeline = _get_pipeline()
    content = await file.read()
    media_type = file.content_type or ""

    verdict = await asyncio.to_thread(
        pipeline.verify, content, media_type, owner_name, occupant_name
    )
    return _build_response(verdict)


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and configuration info."""
    pipeline = _get_pipeline()
    return HealthResponse(
        status="healthy",
        version=__version__,
        model=pipeline.client.model,
        timeout_seconds=pipeline.client.timeout_seconds,
    )
