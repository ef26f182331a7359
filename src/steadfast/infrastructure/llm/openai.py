"""OpenAI chat-completions provider.

Also reaches any server exposing the same /v1/chat/completions API through
``api_url`` or ``OPENAI_API_URL``.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from steadfast.domain.config.llm import LLMConfig
from steadfast.domain.errors import LLMRequestError
from steadfast.domain.models.retry_policy import DEFAULT_TIMEOUT, RetryPolicy
from steadfast.infrastructure.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """One POST per ``generate`` call

    Transport and HTTP failures are raised as LLMRequestError carrying the
    response status, so the runner can still tell a 429 from a 401.
    """

    API_URL = "https://api.openai.com/v1/chat/completions"
    API_KEY_ENV = "OPENAI_API_KEY"

    def __init__(self, config: Optional[Dict[str, Any]] = None, policy: Optional[RetryPolicy] = None):
        super().__init__(config, policy)
        try:
            self.settings = LLMConfig.model_validate({**self.config, "provider": "openai"})
        except ValidationError as e:
            raise ValueError(f"Invalid LLM settings: {e}") from e

        self.api_url = self.settings.api_url or os.getenv("OPENAI_API_URL") or self.API_URL
        self.api_key = self.settings.api_key or os.getenv(self.API_KEY_ENV)
        # requests enforces the per-attempt timeout inside the worker thread
        self.request_timeout = self.retry_policy.timeout or DEFAULT_TIMEOUT

    def _validate_config(self, config: Dict[str, Any]) -> None:
        if not (config.get("api_key") or os.getenv(self.API_KEY_ENV)):
            raise ValueError(f"API key is required. Set {self.API_KEY_ENV} or provide api_key in config.")

    def generate(self, prompt: str, **kwargs) -> str:
        """Request a completion (``kwargs`` override sampling fields such as temperature)"""
        payload = self.settings.sampling()
        payload.update(kwargs)
        payload["messages"] = [{"role": "user", "content": prompt}]

        response = self._post(payload)
        try:
            return response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMRequestError(f"Failed to parse LLM response JSON: {e}") from e

    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"}
        logger.debug(f"LLM request to {self.api_url} (model={payload['model']})")
        try:
            response = requests.post(self.api_url, json=payload, headers=headers, timeout=self.request_timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise LLMRequestError(f"LLM API request failed: {e}", status_code=status_code) from e
        except requests.exceptions.Timeout as e:
            raise LLMRequestError(f"LLM API request timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            raise LLMRequestError(f"LLM API connection error: {e}") from e
        return response
