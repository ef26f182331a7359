"""Mock LLM provider for testing and prototyping"""

import threading
import time
from typing import Any, Dict, Optional

from steadfast.domain.errors import LLMRequestError
from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.llm.base import LLMProvider


class MockLLMProvider(LLMProvider):
    """Mock LLM provider that returns predefined responses

    Can simulate a flaky backend: the first ``fail_times`` calls raise
    LLMRequestError with ``fail_status``.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, policy: Optional[RetryPolicy] = None):
        """Initialize mock provider

        Args:
            config: Optional configuration with:
                - delay: Simulated API delay in seconds (default: 0.0)
                - responses: Dict mapping prompts to responses
                - fail_times: Number of initial calls that fail (default: 0)
                - fail_status: HTTP status of simulated failures (default: 503)
            policy: Retry policy for ``resilient_generate`` (built from config if None)
        """
        super().__init__(config, policy)
        config = self.config
        self.delay = config.get("delay", 0.0)
        self.responses = config.get("responses", {})
        self.fail_times = config.get("fail_times", 0)
        self.fail_status = config.get("fail_status", 503)
        self.calls = 0
        self._lock = threading.Lock()

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate mock provider configuration"""
        if "delay" in config and not isinstance(config["delay"], (int, float)):
            raise ValueError("delay must be a number")
        if "delay" in config and config["delay"] < 0:
            raise ValueError("delay must be non-negative")
        if "fail_times" in config and (not isinstance(config["fail_times"], int) or config["fail_times"] < 0):
            raise ValueError("fail_times must be a non-negative integer")
        if "fail_status" in config and not (isinstance(config["fail_status"], int) and 400 <= config["fail_status"] < 600):
            raise ValueError("fail_status must be an HTTP error status (400-599)")

    def generate(self, prompt: str, **kwargs) -> str:
        """Generate mock response

        Args:
            prompt: Input prompt (used to lookup predefined response)
            **kwargs: Ignored for mock provider

        Returns:
            Mock response text
        """
        # Calls may come from worker threads
        with self._lock:
            self.calls += 1
            call_number = self.calls

        if self.delay:
            time.sleep(self.delay)

        if call_number <= self.fail_times:
            raise LLMRequestError(
                f"Simulated failure {call_number}/{self.fail_times}", status_code=self.fail_status
            )

        if prompt in self.responses:
            return self.responses[prompt]
        return f"Mock LLM response to: {prompt}"
