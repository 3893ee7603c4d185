"""Minimal OpenAI-compatible chat completion client."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import (
    CapabilityError,
    CapabilityNotConfiguredError,
    CapabilityRateLimitedError,
    CapabilityRefusedError,
    CapabilityTruncatedError,
)

DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"


@dataclass(slots=True, frozen=True)
class GenerationParams:
    """Sampling parameters for one generation call."""

    temperature: float = 0.7
    max_output_tokens: int = 500


class GenerationClient:
    """HTTP client for chat completion returning the raw assistant text."""

    def __init__(
        self,
        model: str = "gpt-5.1",
        api_key: str | None = None,
        endpoint: str | None = None,
        timeout_seconds: float = 60,
        api_key_env: str = "OPENAI_API_KEY",
    ):
        self.model = model
        self.api_key = api_key or os.getenv(api_key_env, "").strip()
        self.endpoint = endpoint or DEFAULT_ENDPOINT
        self.timeout_seconds = timeout_seconds
        self.api_key_env = api_key_env

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def generate(self, system_prompt: str, user_prompt: str, params: GenerationParams) -> str:
        """Send one chat completion request.

        Returns:
            Stripped assistant content. Empty text is returned as-is.

        Raises:
            CapabilityTruncatedError: The output hit the token limit.
            CapabilityRefusedError: The output was withheld by a safety filter.
            CapabilityRateLimitedError: HTTP 429 from the service.
            CapabilityError: Any other HTTP or network failure.
        """

        if not self.enabled:
            raise CapabilityNotConfiguredError(f"{self.api_key_env} is not set")

        payload = {
            "model": self.model,
            "temperature": params.temperature,
            "max_completion_tokens": params.max_output_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }

        request = Request(
            self.endpoint,
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            method="POST",
        )

        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                body = json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            detail = _read_error_body(exc)
            if exc.code == 429:
                raise CapabilityRateLimitedError(detail, status=429) from exc
            raise CapabilityError(f"HTTP {exc.code}: {detail}", status=exc.code) from exc
        except (URLError, TimeoutError, OSError) as exc:
            raise CapabilityError(f"Generation service unreachable: {exc}") from exc
        except ValueError as exc:
            raise CapabilityError(f"Generation service returned invalid JSON: {exc}") from exc

        return _read_choice(body)


def _read_choice(body: dict) -> str:
    choices = body.get("choices") or []
    if not choices:
        raise CapabilityError("Generation service returned no choices")

    choice = choices[0]
    message = choice.get("message") or {}
    finish_reason = choice.get("finish_reason")

    if finish_reason == "content_filter" or message.get("refusal"):
        raise CapabilityRefusedError(str(message.get("refusal") or "Output withheld by content filter"))
    if finish_reason == "length":
        raise CapabilityTruncatedError("Output was cut off by the token limit")

    return (message.get("content") or "").strip()


def _read_error_body(exc: HTTPError) -> str:
    try:
        raw = exc.read().decode("utf-8", errors="replace")
    except OSError:
        return str(exc.reason)

    try:
        data = json.loads(raw)
    except ValueError:
        return raw or str(exc.reason)

    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or "") or raw
    return raw
