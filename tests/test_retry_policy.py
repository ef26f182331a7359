"""Tests for RetryPolicy, attempt records and the timeout helper"""

import asyncio
import dataclasses

import pytest

from conftest import RecordingObserver
from steadfast.domain.errors import OperationTimeoutError, RetryExhaustedError
from steadfast.domain.models.attempt import AttemptObserver, Failure, Success
from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.timeout import with_timeout


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 4
        assert policy.max_retries == 3
        assert policy.base_delay == 1.0
        assert policy.max_delay == 30.0
        assert policy.use_jitter is True
        assert policy.jitter_fraction == 0.3
        assert policy.timeout == 60.0
        assert policy.retry_predicate is None

    def test_from_max_retries(self):
        policy = RetryPolicy.from_max_retries(2, base_delay=0.5)
        assert policy.max_attempts == 3
        assert policy.base_delay == 0.5

    def test_from_negative_max_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy.from_max_retries(-1)

    def test_is_immutable(self):
        policy = RetryPolicy()
        with pytest.raises(dataclasses.FrozenInstanceError):
            policy.max_attempts = 10

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"max_attempts": 2.5},
            {"max_attempts": True},
            {"base_delay": 0},
            {"base_delay": 2.0, "max_delay": 1.0},
            {"jitter_fraction": 1.0},
            {"jitter_fraction": -0.1},
            {"timeout": 0},
            {"observer": object()},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)

    def test_timeout_can_be_disabled(self):
        assert RetryPolicy(timeout=None).timeout is None

    def test_observer_protocol(self):
        observer = RecordingObserver()
        assert isinstance(observer, AttemptObserver)
        assert RetryPolicy(observer=observer).observer is observer


class TestAttemptOutcomes:
    def test_success_and_failure_records(self):
        error = ValueError("x")
        assert Success("v", 1).succeeded
        assert not Failure(error, 2).succeeded
        assert Failure(error, 2).attempt_number == 2

    def test_exhaustion_error_message(self):
        cause = ConnectionResetError("reset")
        error = RetryExhaustedError(3, cause, [Failure(cause, 3)])
        assert str(error) == "Operation failed after 3 attempts: reset"
        assert error.failures[0].error is cause


class TestWithTimeout:
    def test_returns_result_in_time(self):
        async def quick():
            return "fast"

        assert asyncio.run(with_timeout(quick, 1.0)) == "fast"

    def test_raises_timeout_error(self):
        async def slow():
            await asyncio.sleep(5)

        with pytest.raises(OperationTimeoutError) as exc_info:
            asyncio.run(with_timeout(slow, 0.01))
        assert exc_info.value.timeout == 0.01
        assert "timed out after 0.01s" in str(exc_info.value)

    def test_custom_message(self):
        async def slow():
            await asyncio.sleep(5)

        with pytest.raises(TimeoutError, match="itinerary took too long"):
            asyncio.run(with_timeout(slow, 0.01, "itinerary took too long"))

    def test_operation_errors_pass_through(self):
        async def broken():
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            asyncio.run(with_timeout(broken, 1.0))

    def test_operation_timeout_error_passes_through(self):
        async def socket_timeout():
            raise TimeoutError("upstream socket timed out")

        with pytest.raises(TimeoutError) as exc_info:
            asyncio.run(with_timeout(socket_timeout, 60.0))
        assert not isinstance(exc_info.value, OperationTimeoutError)
        assert str(exc_info.value) == "upstream socket timed out"

    def test_nested_timeout_is_not_rewrapped(self):
        async def inner():
            await asyncio.sleep(5)

        async def outer():
            return await with_timeout(inner, 0.01, "inner deadline")

        with pytest.raises(OperationTimeoutError, match="inner deadline"):
            asyncio.run(with_timeout(outer, 1.0))
