"""
Bounded retry with exponential backoff for transient network failures.

Only failures where no HTTP response was received, and where trying
again has a fair chance of working, are retried: timeouts, refused
connections and connections dropped halfway.  Anything with an HTTP
status, DNS failures, TLS failures and cancellation go straight back to
the caller.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable
from typing import Callable
from typing import Optional
from typing import TypeVar

from davkit.lib import error

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attributes:
        max_retries: How many times a failed exchange is retried; the
          exchange is attempted at most max_retries + 1 times
        base_delay: Delay in seconds before the first retry.  It doubles
          for every attempt already used: 0.1, 0.2, 0.4 ...
    """

    max_retries: int = 3
    base_delay: float = 0.1

    def is_retryable(self, exc: BaseException) -> bool:
        return isinstance(exc, error.TransportError) and exc.retryable

    def delay(self, attempts_used: int) -> float:
        return self.base_delay * (2**attempts_used)

    def run(self, exchange: Callable[[], T], sleep: Optional[Callable[[float], None]] = None) -> T:
        """
        Calls ``exchange`` until it returns, retrying transient failures.
        The sleeping between attempts blocks the calling thread; use
        run_async where that matters.
        """
        sleep = sleep or time.sleep
        attempts_used = 0
        while True:
            try:
                return exchange()
            except error.TransportError as err:
                if not self.is_retryable(err) or attempts_used >= self.max_retries:
                    raise
                delay = self.delay(attempts_used)
                attempts_used += 1
                log.info(
                    "%s, retry %i of %i in %.2fs", err, attempts_used, self.max_retries, delay
                )
                sleep(delay)

    async def run_async(
        self,
        exchange: Callable[[], Awaitable[T]],
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> T:
        """
        Awaits ``exchange()`` until it returns, retrying transient
        failures.  The delays are asyncio timers, so other exchanges
        carry on meanwhile, and cancelling the task stops the retries.
        """
        sleep = sleep or asyncio.sleep
        attempts_used = 0
        while True:
            try:
                return await exchange()
            except error.TransportError as err:
                if not self.is_retryable(err) or attempts_used >= self.max_retries:
                    raise
                delay = self.delay(attempts_used)
                attempts_used += 1
                log.info(
                    "%s, retry %i of %i in %.2fs", err, attempts_used, self.max_retries, delay
                )
                await sleep(delay)
