"""Retryability classification for arbitrary errors.

Errors coming out of wrapped operations have no common shape: HTTP clients put
the status on ``.response``, SDKs expose ``.status`` or ``.status_code``,
others use ``.response_code`` and socket errors carry an errno. This module
maps all of them to a typed ``ClassifiedError`` so the runner only needs a
``predicate(error) -> bool``.
"""

from __future__ import annotations

import asyncio
import errno
import logging
from typing import Optional

import requests

from steadfast.domain.errors import OperationCancelledError
from steadfast.domain.models.classified_error import ClassifiedError, ErrorKind

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

RETRYABLE_NETWORK_CODES = frozenset({"ECONNRESET", "ETIMEDOUT", "ECONNREFUSED", "ECONNABORTED"})

RETRYABLE_ERRNOS = frozenset({errno.ECONNRESET, errno.ETIMEDOUT, errno.ECONNREFUSED, errno.ECONNABORTED})

RETRYABLE_MESSAGE_HINTS = ("rate limit", "too many requests", "timeout", "timed out")

_NETWORK_EXCEPTIONS = (
    TimeoutError,
    asyncio.TimeoutError,
    ConnectionResetError,
    ConnectionRefusedError,
    ConnectionAbortedError,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


def _as_status(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    # Some clients report the status as text, e.g. "404"
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def extract_status(error: BaseException) -> Optional[int]:
    """Find an HTTP-style status code on an error, if it carries one"""
    for attr in ("status", "status_code", "response_code"):
        status = _as_status(getattr(error, attr, None))
        if status is not None:
            return status

    response = getattr(error, "response", None)
    if response is not None:
        for attr in ("status_code", "status"):
            status = _as_status(getattr(response, attr, None))
            if status is not None:
                return status
    return None


def _network_reason_single(error: BaseException) -> Optional[str]:
    if isinstance(error, _NETWORK_EXCEPTIONS):
        return f"network error ({type(error).__name__})"

    code = getattr(error, "code", None)
    if isinstance(code, str) and code.upper() in RETRYABLE_NETWORK_CODES:
        return f"network error ({code.upper()})"

    if isinstance(error, OSError) and error.errno in RETRYABLE_ERRNOS:
        return f"network error ({errno.errorcode.get(error.errno, error.errno)})"
    return None


def _network_reason(error: BaseException) -> Optional[str]:
    # Adapters wrap transport errors (``raise X from e``); look through the chain
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        reason = _network_reason_single(current)
        if reason:
            return reason
        current = current.__cause__
    return None


def _message_reason(error: BaseException) -> Optional[str]:
    message = str(error).lower()
    for hint in RETRYABLE_MESSAGE_HINTS:
        if hint in message:
            return f"message mentions '{hint}'"
    return None


def _classify_known(error: BaseException) -> Optional[ClassifiedError]:
    """Classification rules shared by the default and the LLM predicates.

    Returns None when no rule matched.
    """
    if not isinstance(error, Exception):
        return ClassifiedError(error, ErrorKind.TERMINAL, "interrupted")
    if isinstance(error, OperationCancelledError):
        return ClassifiedError(error, ErrorKind.TERMINAL, "cancelled")

    status = extract_status(error)
    if status is not None:
        if status in RETRYABLE_STATUS_CODES:
            return ClassifiedError(error, ErrorKind.RETRYABLE, f"status {status}", status)
        if status >= 400:
            return ClassifiedError(error, ErrorKind.TERMINAL, f"status {status}", status)

    reason = _network_reason(error) or _message_reason(error)
    if reason:
        return ClassifiedError(error, ErrorKind.RETRYABLE, reason, status)
    return None


def classify_error(error: BaseException) -> ClassifiedError:
    """Classify an error as retryable or terminal

    Errors with no status and no recognizable transient signal are treated as
    retryable: nothing says the failure is the caller's fault.

    Args:
        error: Error raised by an attempt

    Returns:
        ClassifiedError describing the decision
    """
    classified = _classify_known(error)
    if classified is not None:
        return classified
    return ClassifiedError(error, ErrorKind.RETRYABLE, "unclassified error")


def is_retryable(error: BaseException) -> bool:
    """Default retry predicate"""
    return classify_error(error).is_retryable


def llm_retry_predicate(error: BaseException) -> bool:
    """Retry predicate for LLM completions.

    Same rules as :func:`is_retryable`, except unclassified errors are terminal:
    a completion that fails for an unknown reason is usually a bad request or
    an unparsable response, which a retry will not fix.
    """
    classified = _classify_known(error)
    if classified is None:
        logger.debug(f"Not retrying unclassified LLM error: {error!r}")
        return False
    return classified.is_retryable
