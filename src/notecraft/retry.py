"""Retry wrapper around one call to the generation capability."""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from .errors import (
    QUOTA_GUIDANCE,
    CapabilityError,
    CapabilityQuotaError,
    CapabilityRateLimitedError,
    PipelineError,
)
from .interfaces import GenerationCapability
from .llm import GenerationParams
from .models import AttemptRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUOTA = "quota"
RATE_LIMITED = "rate_limited"
OTHER = "other"

QUOTA_MARKERS = ("quota", "billing", "exceeded", "insufficient_quota")


def classify_failure(exc: BaseException) -> str:
    """Sort a failed call into quota, rate_limited or other."""

    status = getattr(exc, "status", None)
    if status is None:
        status = getattr(exc, "status_code", None)

    if status != 429 and not isinstance(exc, CapabilityRateLimitedError):
        return OTHER

    message = str(exc).lower()
    if any(marker in message for marker in QUOTA_MARKERS):
        return QUOTA
    return RATE_LIMITED


def call_with_retry(
    invoke: Callable[[], T],
    max_attempts: int = 3,
    base_delay_ms: int = 1000,
    *,
    sleep: Callable[[float], None] = time.sleep,
    attempts: list[AttemptRecord] | None = None,
) -> T:
    """Run ``invoke`` retrying only rate-limited failures.

    Quota failures are raised at once as CapabilityQuotaError with remediation
    steps. Rate-limited failures wait ``base_delay_ms * 2**attempt`` before the
    next attempt; once attempts run out the last error propagates. Anything else
    propagates immediately.

    Args:
        invoke: Zero-argument callable performing one request.
        max_attempts: Upper bound on calls to ``invoke``.
        base_delay_ms: Delay before the second attempt.
        sleep: Suspension function, seconds.
        attempts: Optional list receiving one AttemptRecord per failed attempt.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(max_attempts):
        try:
            return invoke()
        except Exception as exc:
            kind = classify_failure(exc)
            is_last = attempt == max_attempts - 1
            delay_ms = base_delay_ms * 2**attempt if kind == RATE_LIMITED and not is_last else 0

            record = AttemptRecord(attempt=attempt, delay_ms=delay_ms, kind=kind)
            if attempts is not None:
                attempts.append(record)
            logger.warning(
                "Generation attempt %d/%d failed (%s), delay_ms=%d: %s",
                attempt + 1,
                max_attempts,
                kind,
                delay_ms,
                exc,
            )

            if kind == QUOTA:
                raise CapabilityQuotaError(
                    f"Generation quota exceeded. Status: {getattr(exc, 'status', 429)}. "
                    f"Message: {exc}\n\n{QUOTA_GUIDANCE}",
                    status=429,
                ) from exc
            if kind == OTHER or is_last:
                raise

            sleep(delay_ms / 1000)

    raise AssertionError("unreachable")


class ResilientGenerator:
    """Generation capability guarded by ``call_with_retry``.

    Failures that are not already PipelineErrors are wrapped in CapabilityError
    so stages always surface a typed failure. Rate limits that outlast every
    retry surface as a generic "try again later" CapabilityRateLimitedError.
    """

    def __init__(
        self,
        capability: GenerationCapability,
        max_attempts: int = 3,
        base_delay_ms: int = 1000,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.capability = capability
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.sleep = sleep

    def generate(
        self,
        stage: str,
        system_prompt: str,
        user_prompt: str,
        params: GenerationParams,
        attempts: list[AttemptRecord] | None = None,
    ) -> str:
        """Run one stage call; ``attempts`` receives this call's failed attempts."""

        try:
            return call_with_retry(
                lambda: self.capability.generate(system_prompt, user_prompt, params),
                max_attempts=self.max_attempts,
                base_delay_ms=self.base_delay_ms,
                sleep=self.sleep,
                attempts=attempts,
            )
        except PipelineError as exc:
            if isinstance(exc, CapabilityRateLimitedError):
                raise CapabilityRateLimitedError(_busy_reason(stage), status=exc.status) from exc
            raise
        except Exception as exc:
            if classify_failure(exc) == RATE_LIMITED:
                raise CapabilityRateLimitedError(_busy_reason(stage), status=429) from exc
            raise CapabilityError(f"{stage} generation failed: {exc}") from exc


def _busy_reason(stage: str) -> str:
    return f"{stage} generation is rate limited, please try again later"
