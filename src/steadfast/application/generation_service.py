"""Generation service - resilient, section-by-section LLM generation"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.llm.base import LLMProvider
from steadfast.infrastructure.llm.resilient import resilient_generate
from steadfast.infrastructure.retry import SleepFn

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Result of generating a document section by section"""

    sections: List[Optional[str]] = field(default_factory=list)  # None where a section failed
    errors: Dict[int, Exception] = field(default_factory=dict)  # section index -> final error

    @property
    def is_successful(self) -> bool:
        """Check if every section was generated"""
        return not self.errors

    @property
    def text(self) -> str:
        """Successful sections joined in order"""
        return "\n\n".join(s for s in self.sections if s is not None)


class GenerationService:
    """Generates long content as independent sections.

    Each section is its own resilient request, so one slow or failing section
    costs a retry of that section only, and a section that ultimately fails does
    not discard the ones that succeeded.
    """

    def __init__(
        self,
        llm_provider: LLMProvider,
        policy: Optional[RetryPolicy] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        """Initialize generation service

        Args:
            llm_provider: LLM provider instance
            policy: Retry policy per section (provider's policy if None)
            sleep: Coroutine used to wait between attempts
        """
        self.llm_provider = llm_provider
        self.policy = policy
        self.sleep = sleep

    async def generate(self, prompt: str, cancel_event: Optional[asyncio.Event] = None) -> str:
        """Generate a single completion"""
        return await resilient_generate(
            self.llm_provider, prompt, self.policy, sleep=self.sleep, cancel_event=cancel_event
        )

    async def generate_sections(
        self,
        prompts: Iterable[str],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GenerationResult:
        """Generate one section per prompt, in order

        Args:
            prompts: One prompt per section
            cancel_event: Abandons the remaining sections when set

        Returns:
            GenerationResult with a slot per prompt
        """
        result = GenerationResult()
        for index, prompt in enumerate(prompts):
            logger.info(f"Generating section {index + 1}")
            try:
                result.sections.append(await self.generate(prompt, cancel_event=cancel_event))
            except Exception as e:
                if cancel_event is not None and cancel_event.is_set():
                    raise
                logger.error(f"Section {index + 1} failed: {e}")
                result.sections.append(None)
                result.errors[index] = e

        logger.info(
            f"Generated {len(result.sections) - len(result.errors)}/{len(result.sections)} sections"
        )
        return result
