"""Understanding service client tests — httpx.MockTransport, no real network."""

from __future__ import annotations

import json

import httpx
import pytest

from lease_verifier.config import Settings
from lease_verifier.exceptions import ServiceError, TransportError
from lease_verifier.llm_client import UnderstandingServiceClient

BASE_URL = "https://llm.test/v1"


def _completion(content) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


def _client(handler, api_key: str | None = "sk-test", timeout: float = 2.0) -> UnderstandingServiceClient:
    return UnderstandingServiceClient(
        api_key=api_key,
        model="test-model",
        timeout_seconds=timeout,
        base_url=BASE_URL,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


class _Recorder:
    """MockTransport handler that records requests and replays one behaviour."""

    def __init__(self, respond):
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


# ═══════════════════════════════════════════════════════════════════════
# SUCCESS
# ═══════════════════════════════════════════════════════════════════════


class TestInvokeSuccess:
    def test_returns_reply_text_untouched(self):
        reply = 'Sure! ```json\n{"is_lease_document": true}\n```'
        recorder = _Recorder(lambda request: httpx.Response(200, json=_completion(reply)))
        assert _client(recorder).invoke("the prompt") == reply

    def test_sends_single_user_message_with_model(self):
        recorder = _Recorder(lambda request: httpx.Response(200, json=_completion("{}")))
        _client(recorder).invoke("verify this lease")

        assert len(recorder.requests) == 1
        request = recorder.requests[0]
        assert request.url.path.endswith("/chat/completions")
        assert request.headers["authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["model"] == "test-model"
        assert body["messages"] == [{"role": "user", "content": "verify this lease"}]

    def test_null_content_becomes_empty_string(self):
        recorder = _Recorder(lambda request: httpx.Response(200, json=_completion(None)))
        assert _client(recorder).invoke("p") == ""

    def test_no_choices_becomes_empty_string(self):
        payload = _completion("x")
        payload["choices"] = []
        recorder = _Recorder(lambda request: httpx.Response(200, json=payload))
        assert _client(recorder).invoke("p") == ""


# ═══════════════════════════════════════════════════════════════════════
# TRANSPORT FAILURES
# ═══════════════════════════════════════════════════════════════════════


class TestTransportFailures:
    def test_timeout(self):
        def _timeout(request):
            raise httpx.ReadTimeout("timed out", request=request)

        recorder = _Recorder(_timeout)
        with pytest.raises(TransportError) as excinfo:
            _client(recorder, timeout=0.5).invoke("p")
        assert excinfo.value.code == "TRANSPORT_ERROR"
        assert excinfo.value.details["timeout_seconds"] == 0.5
        assert len(recorder.requests) == 1

    def test_connection_refused(self):
        def _refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        recorder = _Recorder(_refuse)
        with pytest.raises(TransportError):
            _client(recorder).invoke("p")
        assert len(recorder.requests) == 1

    def test_missing_credentials_fail_before_any_request(self):
        recorder = _Recorder(lambda request: httpx.Response(200, json=_completion("{}")))
        with pytest.raises(TransportError) as excinfo:
            _client(recorder, api_key=None).invoke("p")
        assert "OPENAI_API_KEY" in str(excinfo.value)
        assert recorder.requests == []


# ═══════════════════════════════════════════════════════════════════════
# SERVICE FAILURES
# ═══════════════════════════════════════════════════════════════════════


class TestServiceFailures:
    @pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
    def test_non_success_status_is_service_error(self, status):
        recorder = _Recorder(
            lambda request: httpx.Response(status, json={"error": {"message": "overloaded"}})
        )
        with pytest.raises(ServiceError) as excinfo:
            _client(recorder).invoke("p")
        assert excinfo.value.code == "SERVICE_ERROR"
        assert excinfo.value.details["status_code"] == status
        assert "overloaded" in excinfo.value.details["body"]

    def test_never_retries(self):
        recorder = _Recorder(
            lambda request: httpx.Response(503, json={"error": {"message": "overloaded"}})
        )
        with pytest.raises(ServiceError):
            _client(recorder).invoke("p")
        assert len(recorder.requests) == 1


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════


class TestFromSettings:
    def test_reads_model_timeout_and_key(self):
        settings = Settings(
            _env_file=None,
            OPENAI_API_KEY="sk-from-settings",
            LLM_MODEL="gemini-2.0-flash",
            LLM_TIMEOUT_SECONDS=12.5,
            LLM_BASE_URL=BASE_URL,
        )
        client = UnderstandingServiceClient.from_settings(settings)
        assert client.model == "gemini-2.0-flash"
        assert client.timeout_seconds == 12.5

    def test_missing_key_surfaces_on_invoke(self, settings):
        client = UnderstandingServiceClient.from_settings(settings)
        with pytest.raises(TransportError):
            client.invoke("p")

    def test_sdk_client_has_per_phase_timeout_and_no_retries(self):
        recorder = _Recorder(lambda request: httpx.Response(200, json=_completion("{}")))
        sdk = _client(recorder, timeout=3.0)._get_client()
        assert sdk.timeout == httpx.Timeout(3.0)
        assert sdk.timeout.read == 3.0
        assert sdk.timeout.connect == 3.0
        assert sdk.max_retries == 0
