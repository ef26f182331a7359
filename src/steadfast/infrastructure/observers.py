"""Attempt observers"""

from __future__ import annotations

import logging
from typing import Optional

from steadfast.domain.models.attempt import AttemptOutcome, Success
from steadfast.infrastructure.classification import extract_status


class LoggingAttemptObserver:
    """Reports attempts through ``logging``

    Args:
        label: Prefix naming the operation (e.g. "OpenAI request")
        logger: Logger to write to (defaults to this module's logger)
    """

    def __init__(self, label: str = "Request", logger: Optional[logging.Logger] = None):
        self.label = label
        self.logger = logger or logging.getLogger(__name__)

    def on_attempt(self, attempt: int, error: Optional[BaseException] = None) -> None:
        if error is not None:
            status = extract_status(error)
            detail = f"status {status}" if status is not None else type(error).__name__
            self.logger.info(f"{self.label} attempt {attempt + 1} failed with {detail}: {error}")
        elif attempt > 0:
            self.logger.info(f"Making {self.label.lower()} retry attempt {attempt + 1}...")

    def on_outcome(self, outcome: AttemptOutcome) -> None:
        if isinstance(outcome, Success) and outcome.attempt_number > 1:
            self.logger.info(f"{self.label} succeeded on attempt {outcome.attempt_number}")
