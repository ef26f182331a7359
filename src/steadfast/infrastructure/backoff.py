"""Exponential backoff with jitter.

Canonical formula: the delay before retry ``n`` (0-based, the first retry is
``n=0``) is ``base_delay * 2**n``, optionally multiplied by a uniform factor in
``[1 - jitter_fraction, 1 + jitter_fraction]``, then clamped to ``max_delay``.
"""

from __future__ import annotations

import random
from typing import List, Optional

from tenacity import RetryCallState
from tenacity.wait import wait_base

from steadfast.domain.models.retry_policy import DEFAULT_JITTER_FRACTION, RetryPolicy


def compute_delay(
    retry_index: int,
    base_delay: float,
    max_delay: float,
    use_jitter: bool = True,
    jitter_fraction: float = DEFAULT_JITTER_FRACTION,
    rng: Optional[random.Random] = None,
) -> float:
    """Compute the delay in seconds before retry ``retry_index``

    Args:
        retry_index: 0-based retry number
        base_delay: Delay before the first retry
        max_delay: Upper bound for the result
        use_jitter: Apply +/- ``jitter_fraction`` random variance
        jitter_fraction: Jitter amplitude
        rng: Random source (module-level ``random`` if None)

    Returns:
        Delay in seconds, never above ``max_delay``
    """
    if retry_index < 0:
        raise ValueError("retry_index must be non-negative")

    delay = base_delay * (2 ** retry_index)
    if use_jitter and jitter_fraction > 0:
        source = rng or random
        delay *= source.uniform(1 - jitter_fraction, 1 + jitter_fraction)
    return min(delay, max_delay)


def policy_delay(policy: RetryPolicy, retry_index: int, rng: Optional[random.Random] = None) -> float:
    """Delay before retry ``retry_index`` under ``policy``"""
    return compute_delay(
        retry_index,
        policy.base_delay,
        policy.max_delay,
        use_jitter=policy.use_jitter,
        jitter_fraction=policy.jitter_fraction,
        rng=rng,
    )


def backoff_schedule(policy: RetryPolicy, rng: Optional[random.Random] = None) -> List[float]:
    """Delays for every retry the policy permits, in order"""
    return [policy_delay(policy, n, rng) for n in range(policy.max_retries)]


class wait_policy_backoff(wait_base):
    """tenacity wait strategy applying :func:`compute_delay` for a policy.

    tenacity reports the number of the attempt that just failed (1-based),
    which is exactly one more than the index of the retry about to happen.
    """

    def __init__(self, policy: RetryPolicy, rng: Optional[random.Random] = None):
        self.policy = policy
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        return policy_delay(self.policy, retry_state.attempt_number - 1, self.rng)
