"""Completion backend settings."""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """Which completion backend to call and how to sample from it.

    Only shapes a single request; retries are configured by RetryConfig.
    """

    provider: Literal["mock", "openai"] = "mock"
    model: str = "gpt-4o-mini"
    api_url: Optional[str] = None  # OPENAI_API_URL, then api.openai.com
    api_key: Optional[str] = None  # OPENAI_API_KEY when unset
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(2000, gt=0, le=100000)
    top_p: float = Field(0.9, ge=0.0, le=1.0)

    def sampling(self) -> Dict[str, Any]:
        """Chat-completions body fields controlling generation"""
        return {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
        }
