"""Error hierarchy for resilient operations"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from steadfast.domain.models.attempt import Failure


def failure_message(attempts_made: int, error: BaseException) -> str:
    """Message stating how many attempts were made before ``error`` ended the run"""
    noun = "attempt" if attempts_made == 1 else "attempts"
    detail = str(error) or type(error).__name__
    return f"Operation failed after {attempts_made} {noun}: {detail}"


class SteadfastError(Exception):
    """Base class for all errors raised by steadfast"""


class ConfigurationError(SteadfastError):
    """Configuration validation error."""

    pass


class RetryExhaustedError(SteadfastError):
    """Every permitted attempt failed with a retryable error.

    Attributes:
        attempts_made: Number of attempts that were made
        last_error: Error raised by the final attempt
        failures: One Failure record per failed attempt, in order
    """

    def __init__(
        self,
        attempts_made: int,
        last_error: BaseException,
        failures: Optional[List["Failure"]] = None,
    ):
        self.attempts_made = attempts_made
        self.last_error = last_error
        self.failures = list(failures or [])
        super().__init__(failure_message(attempts_made, last_error))


class OperationTimeoutError(SteadfastError, TimeoutError):
    """A single attempt did not complete within its timeout"""

    def __init__(self, timeout: float, message: Optional[str] = None):
        self.timeout = timeout
        super().__init__(message or f"Operation timed out after {timeout:g}s")


class OperationCancelledError(SteadfastError):
    """The caller signalled cancellation while an operation was running"""

    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message)


class LLMRequestError(SteadfastError):
    """LLM completion request failed.

    Carries the HTTP status of the underlying response (when there was one) so
    the failure can still be classified after the provider wraps it.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
