"""
Shared helpers: half-up rounding, a timing decorator and a duration logger.
"""

import logging
import math
import time
from functools import wraps
from typing import Any, Callable

logger = logging.getLogger(__name__)

SLOW_CALL_SECONDS = 5.0


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def timing_decorator(func: Callable) -> Callable:
    """Log how long `func` took; warn past SLOW_CALL_SECONDS."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            if elapsed > SLOW_CALL_SECONDS:
                logger.warning("%s is slow: %.2fs", func.__qualname__, elapsed)
            else:
                logger.debug("%s finished in %.3fs", func.__qualname__, elapsed)

    return wrapper


def log_performance_metrics(operation: str, duration: float, success: bool = True) -> None:
    """Log one measured operation, escalating the level with its duration."""
    outcome = "ok" if success else "failed"

    if duration < 1:
        logger.debug("%s %s in %.2fs", operation, outcome, duration)
    elif duration < SLOW_CALL_SECONDS:
        logger.info("%s %s in %.2fs", operation, outcome, duration)
    else:
        logger.warning("%s %s in %.2fs (slow)", operation, outcome, duration)
