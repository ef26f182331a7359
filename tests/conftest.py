from __future__ import annotations

import pytest


class StatusError(Exception):
    """Error carrying an HTTP-style status, like SDK API errors do"""

    def __init__(self, status: int, message: str = ""):
        super().__init__(message or f"status {status}")
        self.status = status


class FlakyOperation:
    """Async operation failing with the given errors before returning a value"""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


class RecordingObserver:
    def __init__(self):
        self.events = []
        self.outcomes = []

    def on_attempt(self, attempt, error=None):
        self.events.append((attempt, error))

    def on_outcome(self, outcome):
        self.outcomes.append(outcome)


@pytest.fixture
def sleeps():
    """Fake async sleep recording requested delays instead of waiting"""
    recorded = []

    async def fake_sleep(seconds):
        recorded.append(seconds)

    fake_sleep.calls = recorded
    return fake_sleep
