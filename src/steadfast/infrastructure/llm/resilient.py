"""Resilient LLM completions"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Optional

from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.classification import llm_retry_predicate
from steadfast.infrastructure.llm.base import LLMProvider
from steadfast.infrastructure.retry import SleepFn, run

logger = logging.getLogger(__name__)


def llm_policy(policy: RetryPolicy) -> RetryPolicy:
    """Return ``policy`` with the LLM retry predicate unless it has its own"""
    if policy.retry_predicate is not None:
        return policy
    return dataclasses.replace(policy, retry_predicate=llm_retry_predicate)


async def resilient_generate(
    provider: LLMProvider,
    prompt: str,
    policy: Optional[RetryPolicy] = None,
    *,
    sleep: SleepFn = asyncio.sleep,
    cancel_event: Optional[asyncio.Event] = None,
    **kwargs: Any,
) -> str:
    """Generate a completion, retrying transient provider failures

    Args:
        provider: LLM provider (its blocking ``generate`` runs in a worker thread)
        prompt: Input prompt
        policy: Retry policy (defaults to the provider's configured policy)
        sleep: Coroutine used to wait between attempts
        cancel_event: Abandons the generation when set
        **kwargs: Passed to ``provider.generate``

    Returns:
        Generated text
    """
    effective = llm_policy(policy or provider.retry_policy)
    logger.debug(f"Generating completion with up to {effective.max_attempts} attempts")
    return await run(
        lambda: asyncio.to_thread(provider.generate, prompt, **kwargs),
        effective,
        sleep=sleep,
        cancel_event=cancel_event,
    )
