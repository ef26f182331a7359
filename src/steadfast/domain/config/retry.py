"""Retry configuration model."""

from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from steadfast.domain.models.retry_policy import RetryPolicy


class RetryConfig(BaseModel):
    """Configuration for retry logic.

    Attributes:
        max_attempts: Total number of attempts (initial attempt + retries)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any delay, in seconds
        use_jitter: Randomize delays to desynchronize concurrent callers
        jitter_fraction: Jitter amplitude (0.3 means +/-30%)
        timeout: Per-attempt timeout in seconds (None disables it)
    """

    max_attempts: int = Field(4, gt=0, le=20)
    base_delay: float = Field(1.0, gt=0.0)
    max_delay: float = Field(30.0, gt=0.0)
    use_jitter: bool = True
    jitter_fraction: float = Field(0.3, ge=0.0, lt=1.0)
    timeout: Optional[float] = Field(60.0, gt=0.0)

    @model_validator(mode="before")
    @classmethod
    def _apply_legacy_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        max_retries = data.pop("max_retries", None)
        if max_retries is not None and "max_attempts" not in data:
            data["max_attempts"] = int(max_retries) + 1
        retry_delay = data.pop("retry_delay", None)
        if retry_delay is not None and "base_delay" not in data:
            data["base_delay"] = retry_delay
        return data

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> "RetryConfig":
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be greater than or equal to base_delay")
        return self

    def to_policy(self, **overrides: Any) -> RetryPolicy:
        """Build a runtime RetryPolicy (overrides may set predicate/observer)"""
        values = self.model_dump()
        values.update(overrides)
        return RetryPolicy(**values)
