"""
Transaction safety helpers for marketplace writes.

- Retry with exponential backoff for operations that lost a lock race
- Row locking in primary-key order so concurrent writers never deadlock
"""

import logging
import time
from functools import wraps
from typing import Callable

from django.db import OperationalError

logger = logging.getLogger(__name__)


def retry_on_failure(
    max_retries: int = 3,
    base_delay: float = 0.05,
    max_delay: float = 1.0,
    retryable_exceptions: tuple = (OperationalError,),
    on_exhausted: Callable = None,
):
    """
    Decorator to retry an operation with exponential backoff.

    The wrapped function must be safe to run again from scratch, which holds
    when all of its writes happen inside one transaction.

    Args:
        max_retries: Maximum number of retry attempts (callable or int)
        base_delay: Initial delay between retries (seconds, callable or float)
        max_delay: Maximum delay between retries (seconds)
        retryable_exceptions: Tuple of exceptions that trigger retry
        on_exhausted: Called with the last exception once retries run out;
            whatever it raises replaces the original error
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            retries = max_retries() if callable(max_retries) else max_retries
            delay_base = base_delay() if callable(base_delay) else base_delay

            for attempt in range(retries + 1):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    if attempt < retries:
                        delay = min(delay_base * (2 ** attempt), max_delay)
                        logger.warning(
                            f"Retry {attempt + 1}/{retries} for {func.__name__} "
                            f"after {delay:.2f}s: {str(e)}"
                        )
                        time.sleep(delay)
                        continue

                    logger.error(f"All retries failed for {func.__name__}: {str(e)}")
                    if on_exhausted is not None:
                        on_exhausted(e)
                    raise

        return wrapper
    return decorator


def lock_rows(queryset, ids):
    """
    Lock the rows with the given primary keys, always in ascending key order.

    Returns:
        dict mapping primary key to the locked instance; missing IDs are absent
    """
    return {
        obj.pk: obj
        for obj in queryset.filter(pk__in=sorted(set(ids))).select_for_update().order_by('pk')
    }
