"""Resilient operation runner built on tenacity.

``run`` executes an async operation under a per-attempt timeout and retries
retryable failures with exponential backoff and jitter until it succeeds, hits
a terminal error, or runs out of attempts.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import random
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
)

from steadfast.domain.errors import OperationCancelledError, RetryExhaustedError, failure_message
from steadfast.domain.models.attempt import AttemptObserver, AttemptOutcome, Failure, Success
from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.backoff import wait_policy_backoff
from steadfast.infrastructure.classification import is_retryable
from steadfast.infrastructure.timeout import with_timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[Any]]


def _notify(observer: Optional[AttemptObserver], attempt: int, error: Optional[BaseException] = None) -> None:
    if observer is None:
        return
    try:
        observer.on_attempt(attempt, error)
    except Exception:
        logger.warning(f"Attempt observer failed on attempt {attempt + 1}", exc_info=True)


def _record(outcomes: List[AttemptOutcome], observer: Optional[AttemptObserver], outcome: AttemptOutcome) -> None:
    outcomes.append(outcome)
    # on_outcome is optional on observers
    on_outcome = getattr(observer, "on_outcome", None)
    if on_outcome is None:
        return
    try:
        on_outcome(outcome)
    except Exception:
        logger.warning(f"Attempt observer failed on outcome of attempt {outcome.attempt_number}", exc_info=True)


def _annotate(error: BaseException, attempts_made: int) -> None:
    try:
        setattr(error, "attempts_made", attempts_made)
    except (AttributeError, TypeError):
        logger.debug(f"Could not annotate {type(error).__name__} with attempt count")


def _compose_message(error: BaseException, attempts_made: int) -> None:
    """Prefix the attempt count onto the message of a terminal ``error``

    The error keeps its type. Where the message cannot be rewritten through
    ``args`` (e.g. OSError with errno/strerror) the text is added as a note.
    """
    if str(error).startswith("Operation failed after "):
        # Already composed by an inner run
        return
    message = failure_message(attempts_made, error)
    original_args = error.args
    if not original_args or (len(original_args) == 1 and isinstance(original_args[0], str)):
        error.args = (message,)
        if message in str(error):
            return
        error.args = original_args

    add_note = getattr(error, "add_note", None)
    if add_note is not None:
        add_note(message)


async def _race_cancel(awaitable: Awaitable[T], cancel_event: asyncio.Event) -> T:
    """Await ``awaitable`` unless ``cancel_event`` is set first"""
    if cancel_event.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise OperationCancelledError()

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return task.result()
    await asyncio.gather(task, return_exceptions=True)
    raise OperationCancelledError()


async def _attempt_once(
    operation: Callable[[], Awaitable[T]],
    timeout: Optional[float],
    cancel_event: Optional[asyncio.Event],
) -> T:
    if timeout is None:
        call = operation
    else:
        call = functools.partial(with_timeout, operation, timeout)

    if cancel_event is None:
        return await call()
    return await _race_cancel(call(), cancel_event)


async def run(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    *,
    sleep: SleepFn = asyncio.sleep,
    rng: Optional[random.Random] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> T:
    """Run ``operation`` with timeout, retries and backoff

    Args:
        operation: Zero-argument callable returning an awaitable. It may be
            invoked several times, so it must be safe to repeat
        policy: Retry policy (a default RetryPolicy when None)
        sleep: Coroutine used to wait between attempts
        rng: Random source for jitter (seed it for reproducible delays)
        cancel_event: When set, the run stops with OperationCancelledError

    Returns:
        The value of the first successful attempt

    Raises:
        RetryExhaustedError: Every attempt failed with a retryable error
        OperationCancelledError: ``cancel_event`` was set
        Exception: The first terminal error, same type, with ``attempts_made``
            set and the attempt count prefixed onto its message
    """
    if policy is None:
        policy = RetryPolicy()
    predicate = policy.retry_predicate or is_retryable
    observer = policy.observer
    outcomes: List[AttemptOutcome] = []

    def _failures() -> List[Failure]:
        return [o for o in outcomes if isinstance(o, Failure)]

    def _should_retry(error: BaseException) -> bool:
        if not isinstance(error, Exception) or isinstance(error, OperationCancelledError):
            return False
        return bool(predicate(error))

    def _log_before_sleep(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None or retry_state.next_action is None:
            return
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{policy.max_attempts} failed: "
            f"{retry_state.outcome.exception()}. Retrying in {retry_state.next_action.sleep:.2f}s..."
        )

    async def _sleep(seconds: float) -> None:
        if cancel_event is None:
            await sleep(seconds)
        else:
            await _race_cancel(sleep(seconds), cancel_event)

    retrying = AsyncRetrying(
        sleep=_sleep,
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_policy_backoff(policy, rng),
        retry=retry_if_exception(_should_retry),
        before_sleep=_log_before_sleep,
        reraise=False,
    )

    try:
        async for attempt in retrying:
            with attempt:
                index = attempt.retry_state.attempt_number - 1
                _notify(observer, index)
                logger.debug(f"Starting attempt {index + 1}/{policy.max_attempts}")
                try:
                    value = await _attempt_once(operation, policy.timeout, cancel_event)
                except OperationCancelledError:
                    raise
                except Exception as error:
                    _record(outcomes, observer, Failure(error, index + 1))
                    _notify(observer, index, error)
                    raise
                success = Success(value, index + 1)
                _record(outcomes, observer, success)
                if success.attempt_number > 1:
                    logger.info(f"Operation succeeded on attempt {success.attempt_number}/{policy.max_attempts}")
                return success.value
    except RetryError as e:
        last_error = e.last_attempt.exception()
        attempts_made = e.last_attempt.attempt_number
        logger.error(f"Operation failed after {attempts_made} attempts: {last_error}")
        raise RetryExhaustedError(attempts_made, last_error, _failures()) from last_error
    except OperationCancelledError as e:
        _annotate(e, len(outcomes))
        logger.info(f"Operation cancelled after {len(outcomes)} failed attempts")
        raise
    except Exception as e:
        attempts_made = len(outcomes)
        logger.warning(f"Not retrying after attempt {attempts_made}: {type(e).__name__}: {e}")
        _annotate(e, attempts_made)
        if outcomes and getattr(outcomes[-1], "error", None) is e:
            _compose_message(e, attempts_made)
        raise

    # AsyncRetrying always either yields an attempt or raises
    raise RuntimeError("Retry loop exited without a result")


def resilient(
    policy: Optional[RetryPolicy] = None, **run_kwargs: Any
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator running an async function through :func:`run`

    Args:
        policy: Retry policy applied to every call
        **run_kwargs: Extra keyword arguments for :func:`run` (sleep, rng, cancel_event)
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapped(*args: Any, **kwargs: Any) -> T:
            return await run(lambda: func(*args, **kwargs), policy, **run_kwargs)

        return wrapped

    return decorator
