"""
Fixed-count retry with exponential backoff.
Used by the auth guard: a session check that fails for a transient reason is
retried a few times before the caller is sent back to login.
"""

import logging
import time
from typing import Callable, List, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delays(max_retries: int, base_delay: float) -> List[float]:
    """Delay before each retry: base, 2*base, 4*base, ..."""
    return [base_delay * (2 ** attempt) for attempt in range(max_retries)]


def call_with_backoff(
    fn: Callable[[], T],
    *,
    max_retries: int,
    base_delay: float,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    label: str = "call",
) -> T:
    """Call fn, retrying up to max_retries times on retry_on errors. Re-raises the last error."""
    delays = backoff_delays(max_retries, base_delay)
    attempt = 0
    while True:
        try:
            return fn()
        except retry_on as e:
            if attempt >= len(delays):
                logger.warning(f"{label} failed after {attempt} retries: {e}")
                raise
            delay = delays[attempt]
            attempt += 1
            logger.info(f"{label} failed ({e}); retrying ({attempt}/{max_retries}) in {delay:.2f}s")
            sleep(delay)
