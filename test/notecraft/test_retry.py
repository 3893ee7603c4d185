import pytest

from notecraft.errors import (
    CapabilityError,
    CapabilityQuotaError,
    CapabilityRateLimitedError,
)
from notecraft.retry import (
    OTHER,
    QUOTA,
    RATE_LIMITED,
    ResilientGenerator,
    call_with_retry,
    classify_failure,
)


class StatusError(Exception):
    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class Scripted:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_classify_failure() -> None:
    assert classify_failure(StatusError("You exceeded your current quota", 429)) == QUOTA
    assert classify_failure(StatusError("check your billing details", 429)) == QUOTA
    assert classify_failure(CapabilityRateLimitedError("Too Many Requests", status=429)) == RATE_LIMITED
    assert classify_failure(StatusError("Too Many Requests", 429)) == RATE_LIMITED
    assert classify_failure(StatusError("Internal error", 500)) == OTHER
    assert classify_failure(ValueError("boom")) == OTHER


def test_quota_failure_is_not_retried_and_explains_remediation() -> None:
    invoke = Scripted([StatusError("insufficient_quota: You exceeded your current quota", 429), "never"])
    sleeps = []
    attempts = []

    with pytest.raises(CapabilityQuotaError) as excinfo:
        call_with_retry(invoke, sleep=sleeps.append, attempts=attempts)

    assert invoke.calls == 1
    assert sleeps == []
    assert [record.kind for record in attempts] == [QUOTA]
    assert "Possible solutions" in str(excinfo.value)
    assert "billing" in str(excinfo.value).lower()
    assert excinfo.value.code == "quota_exceeded"


def test_rate_limited_then_success_uses_exponential_delays() -> None:
    invoke = Scripted(
        [
            StatusError("Too Many Requests", 429),
            StatusError("Too Many Requests", 429),
            "ok",
        ]
    )
    sleeps = []
    attempts = []

    result = call_with_retry(invoke, max_attempts=3, base_delay_ms=1000, sleep=sleeps.append, attempts=attempts)

    assert result == "ok"
    assert invoke.calls == 3
    assert [record.delay_ms for record in attempts] == [1000 * 2**n for n in range(2)]
    assert [record.attempt for record in attempts] == [0, 1]
    assert sleeps == [1.0, 2.0]


def test_rate_limited_exhaustion_propagates_last_error() -> None:
    last = StatusError("Too Many Requests (third)", 429)
    invoke = Scripted([StatusError("first", 429), StatusError("second", 429), last])
    sleeps = []

    with pytest.raises(StatusError) as excinfo:
        call_with_retry(invoke, max_attempts=3, base_delay_ms=10, sleep=sleeps.append)

    assert excinfo.value is last
    assert invoke.calls == 3
    assert sleeps == [0.01, 0.02]


def test_other_failure_propagates_immediately() -> None:
    invoke = Scripted([StatusError("server exploded", 500), "never"])

    with pytest.raises(StatusError):
        call_with_retry(invoke, sleep=lambda _: None)

    assert invoke.calls == 1


def test_resilient_generator_wraps_untyped_failures() -> None:
    class Capability:
        def generate(self, system_prompt, user_prompt, params):
            raise StatusError("Too Many Requests", 429)

    generator = ResilientGenerator(Capability(), max_attempts=2, base_delay_ms=1, sleep=lambda _: None)

    attempts = []
    with pytest.raises(CapabilityRateLimitedError):
        generator.generate("extract", "sys", "user", None, attempts=attempts)
    assert len(attempts) == 2

    class Broken:
        def generate(self, system_prompt, user_prompt, params):
            raise RuntimeError("socket closed")

    with pytest.raises(CapabilityError) as excinfo:
        ResilientGenerator(Broken()).generate("card", "sys", "user", None)
    assert excinfo.value.code == "capability_error"
    assert "card" in excinfo.value.reason


def test_resilient_generator_records_attempts_per_call() -> None:
    class Flaky:
        def __init__(self):
            self.calls = 0

        def generate(self, system_prompt, user_prompt, params):
            self.calls += 1
            if self.calls % 2:
                raise StatusError("Too Many Requests", 429)
            return "ok"

    generator = ResilientGenerator(Flaky(), max_attempts=3, base_delay_ms=1, sleep=lambda _: None)
    first, second = [], []

    assert generator.generate("title", "sys", "user", None, attempts=first) == "ok"
    assert generator.generate("topic", "sys", "user", None, attempts=second) == "ok"

    assert [record.kind for record in first] == [RATE_LIMITED]
    assert [record.kind for record in second] == [RATE_LIMITED]
    assert not hasattr(generator, "attempts")


def test_exhausted_typed_rate_limit_gets_generic_retry_message() -> None:
    class Throttled:
        def generate(self, system_prompt, user_prompt, params):
            raise CapabilityRateLimitedError("Rate limit reached for gpt-5.1 in organization org-123", status=429)

    generator = ResilientGenerator(Throttled(), max_attempts=2, base_delay_ms=1, sleep=lambda _: None)

    with pytest.raises(CapabilityRateLimitedError) as excinfo:
        generator.generate("article", "sys", "user", None)

    assert "try again later" in excinfo.value.reason
    assert "org-123" not in excinfo.value.reason
    assert excinfo.value.status == 429
    assert isinstance(excinfo.value.__cause__, CapabilityRateLimitedError)


def test_quota_error_passes_through_resilient_generator_unchanged() -> None:
    class OutOfQuota:
        def generate(self, system_prompt, user_prompt, params):
            raise CapabilityRateLimitedError("You exceeded your current quota", status=429)

    with pytest.raises(CapabilityQuotaError) as excinfo:
        ResilientGenerator(OutOfQuota(), sleep=lambda _: None).generate("daily", "sys", "user", None)

    assert "Possible solutions" in excinfo.value.reason
