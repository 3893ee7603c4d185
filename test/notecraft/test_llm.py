import io
import json
from urllib.error import HTTPError, URLError

import pytest

from notecraft import llm
from notecraft.errors import (
    CapabilityError,
    CapabilityNotConfiguredError,
    CapabilityRateLimitedError,
    CapabilityRefusedError,
    CapabilityTruncatedError,
)
from notecraft.llm import GenerationClient, GenerationParams
from notecraft.retry import QUOTA, RATE_LIMITED, classify_failure


class FakeResponse:
    def __init__(self, body: dict):
        self.body = json.dumps(body).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def read(self) -> bytes:
        return self.body


def _completion(content: str = "hello", finish_reason: str = "stop", refusal=None) -> dict:
    return {
        "choices": [
            {
                "finish_reason": finish_reason,
                "message": {"role": "assistant", "content": content, "refusal": refusal},
            }
        ]
    }


def _http_error(code: int, payload: dict) -> HTTPError:
    return HTTPError(
        "https://example.test/v1/chat/completions",
        code,
        "error",
        {},
        io.BytesIO(json.dumps(payload).encode("utf-8")),
    )


def _client() -> GenerationClient:
    return GenerationClient(model="test-model", api_key="sk-test", endpoint="https://example.test/v1/chat/completions")


def test_generate_posts_chat_payload(monkeypatch) -> None:
    captured = {}

    def fake_urlopen(request, timeout):
        captured["request"] = request
        captured["timeout"] = timeout
        return FakeResponse(_completion("  Insightful text  "))

    monkeypatch.setattr(llm, "urlopen", fake_urlopen)

    text = _client().generate("system", "user", GenerationParams(temperature=0.3, max_output_tokens=42))

    payload = json.loads(captured["request"].data.decode("utf-8"))
    assert text == "Insightful text"
    assert payload["model"] == "test-model"
    assert payload["temperature"] == 0.3
    assert payload["max_completion_tokens"] == 42
    assert payload["messages"][0] == {"role": "system", "content": "system"}
    assert captured["request"].get_header("Authorization") == "Bearer sk-test"
    assert captured["timeout"] == 60


def test_missing_api_key_is_not_configured(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = GenerationClient()

    assert client.enabled is False
    with pytest.raises(CapabilityNotConfiguredError):
        client.generate("s", "u", GenerationParams())


@pytest.mark.parametrize(
    ("body", "error_type"),
    [
        (_completion("partial", finish_reason="length"), CapabilityTruncatedError),
        (_completion("", finish_reason="content_filter"), CapabilityRefusedError),
        (_completion(None, refusal="I can't help with that."), CapabilityRefusedError),
        ({"choices": []}, CapabilityError),
    ],
)
def test_unusable_completions_raise_typed_errors(monkeypatch, body, error_type) -> None:
    monkeypatch.setattr(llm, "urlopen", lambda request, timeout: FakeResponse(body))

    with pytest.raises(error_type):
        _client().generate("s", "u", GenerationParams())


def test_http_429_is_classified_by_message(monkeypatch) -> None:
    def out_of_quota(request, timeout):
        raise _http_error(429, {"error": {"message": "You exceeded your current quota", "code": "insufficient_quota"}})

    monkeypatch.setattr(llm, "urlopen", out_of_quota)
    with pytest.raises(CapabilityRateLimitedError) as excinfo:
        _client().generate("s", "u", GenerationParams())
    assert excinfo.value.status == 429
    assert classify_failure(excinfo.value) == QUOTA

    def throttled(request, timeout):
        raise _http_error(429, {"error": {"message": "Rate limit reached for requests", "code": "rate_limit_exceeded"}})

    monkeypatch.setattr(llm, "urlopen", throttled)
    with pytest.raises(CapabilityRateLimitedError) as excinfo:
        _client().generate("s", "u", GenerationParams())
    assert classify_failure(excinfo.value) == RATE_LIMITED


def test_server_and_network_errors_become_capability_errors(monkeypatch) -> None:
    def server_error(request, timeout):
        raise _http_error(500, {"error": {"message": "upstream failed"}})

    monkeypatch.setattr(llm, "urlopen", server_error)
    with pytest.raises(CapabilityError) as excinfo:
        _client().generate("s", "u", GenerationParams())
    assert excinfo.value.status == 500
    assert "upstream failed" in excinfo.value.reason

    def offline(request, timeout):
        raise URLError("no route to host")

    monkeypatch.setattr(llm, "urlopen", offline)
    with pytest.raises(CapabilityError) as excinfo:
        _client().generate("s", "u", GenerationParams())
    assert excinfo.value.status is None
