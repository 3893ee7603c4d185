"""Typed failures surfaced by pipeline stages and jobs."""

from __future__ import annotations

QUOTA_GUIDANCE = (
    "Possible solutions:\n"
    "1. Check that the API key belongs to the intended project or organization\n"
    "2. Verify the model quota on the provider's limits page is not 0\n"
    "3. Request a quota increase if needed\n"
    "4. Check billing and make sure a payment method with sufficient balance is on file"
)


class PipelineError(Exception):
    """Base failure carrying a readable reason and a machine-checkable code."""

    code = "pipeline_error"

    def __init__(self, reason: str, code: str | None = None):
        super().__init__(reason)
        self.reason = reason
        if code:
            self.code = code


class InputValidationError(PipelineError):
    code = "invalid_input"


class NothingToSummarizeError(InputValidationError):
    code = "nothing_to_summarize"


class CapabilityError(PipelineError):
    """The generation capability failed or could not be reached."""

    code = "capability_error"

    def __init__(self, reason: str, status: int | None = None, code: str | None = None):
        super().__init__(reason, code=code)
        self.status = status


class CapabilityNotConfiguredError(CapabilityError):
    code = "not_configured"


class CapabilityQuotaError(CapabilityError):
    code = "quota_exceeded"


class CapabilityRateLimitedError(CapabilityError):
    code = "rate_limited"


class CapabilityRefusedError(CapabilityError):
    code = "refused"


class CapabilityTruncatedError(CapabilityError):
    code = "truncated"
