"""Provider lookup by name"""

import logging
from typing import Any, Dict, Optional, Type

from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.llm.base import LLMProvider
from steadfast.infrastructure.llm.mock import MockLLMProvider
from steadfast.infrastructure.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDERS: Dict[str, Type[LLMProvider]] = {
    "mock": MockLLMProvider,
    "openai": OpenAIProvider,
}


def create_provider(
    name: str,
    config: Optional[Dict[str, Any]] = None,
    policy: Optional[RetryPolicy] = None,
) -> LLMProvider:
    """Instantiate the provider registered under ``name`` (case-insensitive)

    ``policy`` becomes the provider's retry policy; without it the policy is
    read from the retry keys of ``config``.

    Raises:
        ValueError: Unknown provider name or invalid provider config
    """
    provider_class = PROVIDERS.get(name.lower())
    if provider_class is None:
        raise ValueError(f"Unknown LLM provider: {name}. Available providers: {', '.join(PROVIDERS)}")
    logger.info(f"Creating {name.lower()} provider")
    return provider_class(config, policy)
