"""ClassifiedError model - typed view of an arbitrary failure"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Whether retrying can change the outcome"""

    RETRYABLE = "retryable"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class ClassifiedError:
    """Result of mapping an error to a retry decision"""

    error: BaseException
    kind: ErrorKind
    reason: str
    status: Optional[int] = None  # HTTP-style status, if the error carried one

    @property
    def is_retryable(self) -> bool:
        return self.kind is ErrorKind.RETRYABLE
