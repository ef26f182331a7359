"""Per-attempt timeout wrapper"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from steadfast.domain.errors import OperationTimeoutError

T = TypeVar("T")


async def with_timeout(
    operation: Callable[[], Awaitable[T]],
    seconds: float,
    message: Optional[str] = None,
) -> T:
    """Await ``operation()`` for at most ``seconds``

    The pending operation is cancelled when the timeout expires. A
    ``TimeoutError`` raised by the operation itself before the deadline (a
    socket or client-library timeout) propagates unchanged.

    Raises:
        OperationTimeoutError: If the operation did not finish in time
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + seconds
    try:
        return await asyncio.wait_for(operation(), timeout=seconds)
    except OperationTimeoutError:
        raise
    except asyncio.TimeoutError as e:
        if loop.time() < deadline:
            raise
        raise OperationTimeoutError(seconds, message) from e
