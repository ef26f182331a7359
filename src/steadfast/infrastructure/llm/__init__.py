"""LLM providers"""

from steadfast.infrastructure.llm.base import LLMProvider
from steadfast.infrastructure.llm.factory import PROVIDERS, create_provider
from steadfast.infrastructure.llm.mock import MockLLMProvider
from steadfast.infrastructure.llm.openai import OpenAIProvider
from steadfast.infrastructure.llm.resilient import resilient_generate

__all__ = [
    "LLMProvider",
    "MockLLMProvider",
    "OpenAIProvider",
    "PROVIDERS",
    "create_provider",
    "resilient_generate",
]
