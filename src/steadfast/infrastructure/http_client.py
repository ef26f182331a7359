"""Shared HTTP client utilities (requests + resilient runner).

requests is blocking, so each attempt runs in a worker thread; the runner owns
retries and backoff.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from steadfast.domain.config.retry import RetryConfig
from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.retry import SleepFn, run

logger = logging.getLogger(__name__)


def retry_policy_from_dict(config: Dict[str, Any]) -> RetryPolicy:
    """Build a RetryPolicy from the retry keys of a plain settings dict.

    Takes the same keys as the ``retry`` config section, legacy aliases
    (``max_retries``, ``retry_delay``) included; other keys are ignored.

    Raises:
        ValueError: If a retry setting is invalid
    """
    try:
        return RetryConfig.model_validate(config).to_policy()
    except ValidationError as e:
        raise ValueError(f"Invalid retry settings: {e}") from e


async def resilient_request(
    method: str,
    url: str,
    *,
    policy: Optional[RetryPolicy] = None,
    sleep: SleepFn = asyncio.sleep,
    **request_kwargs: Any,
) -> requests.Response:
    """Send an HTTP request, retrying on network errors, 429 and 5xx

    ``timeout`` defaults to the policy's per-attempt timeout and is enforced by
    requests itself. A worker thread cannot be cancelled, so the runner only
    applies its own timeout when the request has none (``timeout=None``); a
    request abandoned that way keeps running in its thread while the next
    attempt starts.

    Raises:
        requests.HTTPError: Terminal HTTP status (``attempts_made`` is set)
        RetryExhaustedError: Retryable failures on every attempt
    """
    if policy is None:
        policy = RetryPolicy()
    if "timeout" not in request_kwargs:
        request_kwargs["timeout"] = policy.timeout
    if request_kwargs["timeout"] is not None:
        # requests raises its own Timeout, which is retryable
        policy = dataclasses.replace(policy, timeout=None)

    def _make_request() -> requests.Response:
        logger.debug(f"HTTP {method.upper()} {url}")
        resp = requests.request(method, url, **request_kwargs)
        resp.raise_for_status()
        return resp

    return await run(lambda: asyncio.to_thread(_make_request), policy, sleep=sleep)


async def post_json_with_retries(
    url: str,
    *,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    policy: Optional[RetryPolicy] = None,
    sleep: SleepFn = asyncio.sleep,
) -> requests.Response:
    """POST JSON with retry on network errors, 429 and 5xx."""
    return await resilient_request(
        "POST", url, json=payload, headers=headers, policy=policy, sleep=sleep
    )
