"""
Client for the external understanding service (OpenAI-compatible chat API).

One prompt in, one raw reply string out. The client never retries: the SDK's
own retry loop is disabled and every call is bounded by a fixed timeout.
The timeout is an httpx per-phase limit (connect, write, each read, pool
acquire), not a wall-clock deadline for the whole exchange: a server that
keeps trickling bytes can hold a call open longer than timeout_seconds.
Transport failures and non-success responses surface as different errors so
operators can tell "backend unreachable" from "backend said no".

Design:
  - At most one external call per verification request
  - base_url makes any OpenAI-compatible endpoint usable (e.g. Gemini's)
  - The reply is returned untouched; interpretation belongs to the parser
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
import openai
from openai import OpenAI

from .config import Settings
from .exceptions import ServiceError, TransportError

logger = logging.getLogger(__name__)

ERROR_BODY_MAX_CHARS = 2000


class UnderstandingServiceClient:
    """Sends a verification prompt to the understanding service."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        timeout_seconds: float,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._api_key = api_key
        self._base_url = base_url
        self._http_client = http_client
        self._client: Optional[OpenAI] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> UnderstandingServiceClient:
        api_key = settings.OPENAI_API_KEY.get_secret_value() if settings.OPENAI_API_KEY else None
        return cls(
            api_key=api_key,
            model=settings.LLM_MODEL,
            timeout_seconds=settings.LLM_TIMEOUT_SECONDS,
            base_url=settings.LLM_BASE_URL,
        )

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self._api_key:
                raise TransportError(
                    "Understanding service credentials are not configured (OPENAI_API_KEY)",
                    details={"model": self.model},
                )
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=httpx.Timeout(self.timeout_seconds),
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    def invoke(self, prompt: str) -> str:
        """Send the prompt and return the raw reply text.

        Raises:
            TransportError: Connection, DNS or timeout failure.
            ServiceError: The service answered with a non-success status.
        """
        client = self._get_client()
        logger.info("Calling understanding service (model=%s)", self.model)

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.APITimeoutError as e:
            logger.error("Understanding service timed out after %ss", self.timeout_seconds)
            raise TransportError(
                f"Understanding service did not respond within {self.timeout_seconds}s",
                details={"timeout_seconds": self.timeout_seconds},
            ) from e
        except openai.APIConnectionError as e:
            logger.error("Understanding service unreachable: %s", e)
            raise TransportError(
                f"Could not reach the understanding service: {e}",
                details={"reason": str(e)},
            ) from e
        except openai.APIStatusError as e:
            body = _read_error_body(e)
            logger.error("Understanding service returned HTTP %s", e.status_code)
            raise ServiceError(
                f"Understanding service returned HTTP {e.status_code}",
                details={"status_code": e.status_code, "body": body},
            ) from e
        except openai.OpenAIError as e:
            logger.error("Understanding service call failed: %s", e)
            raise ServiceError(
                f"Understanding service call failed: {e}",
                details={"reason": str(e)},
            ) from e

        if not response.choices:
            logger.warning("Understanding service returned no choices")
            return ""

        content = response.choices[0].message.content
        if content is None:
            logger.warning("Understanding service returned empty content")
            return ""
        return content


def _read_error_body(err: openai.APIStatusError) -> str:
    try:
        return err.response.text[:ERROR_BODY_MAX_CHARS]
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        return ""
