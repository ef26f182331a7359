"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from steadfast.domain.config.llm import LLMConfig
from steadfast.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is performed
    at load time to fail fast on configuration errors.

    Attributes:
        llm: LLM provider configuration
        retry: Retry policy configuration
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "llm": {
                    "provider": "openai",
                    "model": "gpt-4o-mini",
                    "temperature": 0.7,
                    "max_tokens": 2000,
                    "top_p": 0.9,
                },
                "retry": {
                    "max_attempts": 4,
                    "base_delay": 1.0,
                    "max_delay": 30.0,
                    "use_jitter": True,
                    "jitter_fraction": 0.3,
                    "timeout": 60.0,
                },
            }
        },
    )
