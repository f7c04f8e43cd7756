"""
Request pacing for Telldus Live.

Telldus Live throttles clients that issue requests in quick succession.
Every request-issuing call goes through one shared RateLimiter which
serializes requests and keeps them at least ``interval`` seconds apart,
measured from the moment the previous request returned or failed.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Process-wide minimum spacing between API requests.

    One instance is created per process and handed to every client that
    talks to Telldus Live. The clock and sleep functions are injectable so
    tests can run against a fake clock.

    Example:
        limiter = RateLimiter(interval=1.0)
        with limiter.slot():
            response = session.get(url)
    """

    def __init__(
        self,
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize rate limiter.

        Args:
            interval: Minimum seconds between two requests
            clock: Monotonic clock returning seconds
            sleep: Function blocking for the given number of seconds
        """
        if interval < 0:
            raise ValueError("interval cannot be negative")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request: Optional[float] = None

    @property
    def last_request(self) -> Optional[float]:
        """Clock reading when the last request finished (None before the first)."""
        return self._last_request

    def _wait_turn(self) -> None:
        if self._last_request is None:
            return
        remaining = self.interval - (self._clock() - self._last_request)
        if remaining > 0:
            logger.debug(f"Rate limit: waiting {remaining:.2f}s before next request")
            self._sleep(remaining)

    @contextmanager
    def slot(self) -> Iterator[None]:
        """
        Hold the request slot for the duration of one request.

        Blocks until the interval since the previous request has elapsed.
        The finish time is recorded on every exit path, including errors.
        """
        with self._lock:
            self._wait_turn()
            try:
                yield
            finally:
                self._last_request = self._clock()
