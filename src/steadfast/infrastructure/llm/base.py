"""Base LLM provider interface"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.http_client import retry_policy_from_dict


class LLMProvider(ABC):
    """A completion backend making exactly one request per ``generate`` call

    Providers never retry. ``resilient_generate`` runs ``generate`` under
    ``retry_policy``: the policy handed in by the caller, or one built from the
    retry keys of ``config`` (``max_attempts``, ``base_delay``, ``timeout``...).

    Raises:
        ValueError: If ``config`` is invalid
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, policy: Optional[RetryPolicy] = None):
        self.config = dict(config or {})
        self._validate_config(self.config)
        self.retry_policy = policy or retry_policy_from_dict(self.config)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Provider-specific checks, run before the retry policy is built"""

    @abstractmethod
    def generate(self, prompt: str, **kwargs) -> str:
        """Return the completion for ``prompt``

        Raises:
            LLMRequestError: The request failed (``status_code`` set when the
                backend answered with an HTTP error)
        """
