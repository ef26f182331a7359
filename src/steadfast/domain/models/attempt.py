"""Per-attempt outcome records and the attempt observer interface"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union, runtime_checkable


@dataclass(frozen=True)
class Success:
    """Attempt that produced a value"""

    value: Any
    attempt_number: int  # 1-based

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Attempt that raised an error"""

    error: BaseException
    attempt_number: int  # 1-based

    @property
    def succeeded(self) -> bool:
        return False


AttemptOutcome = Union[Success, Failure]


@runtime_checkable
class AttemptObserver(Protocol):
    """Receives attempt events from the runner.

    ``on_attempt(index)`` is called before each attempt and
    ``on_attempt(index, error)`` after each failed one. ``index`` is 0-based.
    An observer may also define ``on_outcome(outcome)``, which receives the
    ``Success`` or ``Failure`` recorded for every attempt.
    Observers are purely observational: whatever they do (including raising)
    has no effect on retry decisions.
    """

    def on_attempt(self, attempt: int, error: Optional[BaseException] = None) -> None:
        ...
