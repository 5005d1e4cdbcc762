"""
Opt-in retry for idempotent reads
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import aiohttp

from evmkit.utils.logger import get_logger

logger = get_logger(__name__)

# Errors worth another attempt. Contract reverts are deterministic and are
# never retried.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ConnectionError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with exponential backoff.

    The default of a single attempt means no retry at all.
    """
    max_attempts: int = 1
    initial_delay: float = 0.5
    backoff: float = 2.0
    max_delay: float = 10.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Delay before retrying after the given 0-based failed attempt"""
        return min(self.initial_delay * (self.backoff ** attempt), self.max_delay)

    async def run(self, operation: Callable[[], Awaitable[Any]], description: str = "operation") -> Any:
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except TRANSIENT_ERRORS as e:
                if attempt == self.max_attempts - 1:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    f"{description} failed ({e}); retrying in {delay}s "
                    f"(attempt {attempt + 1}/{self.max_attempts})"
                )
                await asyncio.sleep(delay)


NO_RETRY = RetryPolicy()
