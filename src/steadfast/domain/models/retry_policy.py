"""RetryPolicy model - immutable per-call-site retry settings"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from steadfast.domain.models.attempt import AttemptObserver

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0
DEFAULT_TIMEOUT = 60.0
DEFAULT_JITTER_FRACTION = 0.3


@dataclass(frozen=True)
class RetryPolicy:
    """How an operation is retried.

    Attributes:
        max_attempts: Total number of tries (initial attempt + retries)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay, in seconds
        use_jitter: Randomize each delay by +/- ``jitter_fraction``
        jitter_fraction: Relative jitter amplitude (0.3 means +/-30%)
        timeout: Per-attempt timeout in seconds, None disables timeout wrapping
        retry_predicate: Decides whether an error is retryable. None means the
            default classification (``steadfast.infrastructure.classification``)
        observer: Optional attempt observer
    """

    max_attempts: int = DEFAULT_MAX_RETRIES + 1
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    use_jitter: bool = True
    jitter_fraction: float = DEFAULT_JITTER_FRACTION
    timeout: Optional[float] = DEFAULT_TIMEOUT
    retry_predicate: Optional[Callable[[BaseException], bool]] = None
    observer: Optional[AttemptObserver] = None

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ValueError("max_attempts must be an integer")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be greater than or equal to base_delay")
        if not (0.0 <= self.jitter_fraction < 1.0):
            raise ValueError("jitter_fraction must be between 0.0 and 1.0 (exclusive)")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive or None")
        if self.observer is not None and not callable(getattr(self.observer, "on_attempt", None)):
            raise ValueError("observer must provide an on_attempt(attempt, error) method")

    @property
    def max_retries(self) -> int:
        """Number of retries after the initial attempt"""
        return self.max_attempts - 1

    @classmethod
    def from_max_retries(cls, max_retries: int, **kwargs: Any) -> "RetryPolicy":
        """Build a policy allowing ``max_retries`` retries after the first try"""
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        return cls(max_attempts=max_retries + 1, **kwargs)
