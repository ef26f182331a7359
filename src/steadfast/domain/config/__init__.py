"""Configuration models with Pydantic validation."""

from steadfast.domain.config.app import AppConfig
from steadfast.domain.config.llm import LLMConfig
from steadfast.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "LLMConfig",
    "RetryConfig",
]
