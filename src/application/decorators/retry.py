"""Retry decorator for provider calls that fail until eventual consistency catches up."""

import asyncio
import logging
from functools import wraps
from typing import Any, Callable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


def retry_until_timeout(
    exceptions: type[BaseException] | tuple[type[BaseException], ...],
    timeout_seconds: float,
    initial_delay: float = 1.0,
    backoff_factor: float = 1.0,
    max_delay: float = 30.0,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Retry an async operation raising one of ``exceptions`` until a deadline.

    The operation is attempted at least once. Once ``timeout_seconds`` has
    elapsed the last exception is re-raised. Exceptions not listed are never
    retried, and cancellation always propagates.

    Args:
        exceptions: Exception type(s) considered transient
        timeout_seconds: Time budget for all attempts, measured from the first one
        initial_delay: Delay in seconds before the first retry
        backoff_factor: Multiplier for delay between retries
        max_delay: Upper bound for a single delay

    Returns:
        Decorated async function with retry logic

    Example:
        @retry_until_timeout(EC2InstanceNotFoundException, timeout_seconds=60)
        async def tag_instance(instance_id: str) -> None:
            await asyncio.to_thread(client.tag, instance_id, tags)
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            loop = asyncio.get_running_loop()
            deadline = loop.time() + timeout_seconds
            delay = initial_delay
            attempt = 0

            while True:
                attempt += 1
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        log.warning(
                            "Retry budget (%.1fs) exhausted for %s after %d attempt(s): %s",
                            timeout_seconds,
                            func.__name__,
                            attempt,
                            str(e),
                        )
                        raise

                    wait = min(delay, remaining, max_delay)
                    log.info(
                        "Transient failure (attempt %d) for %s - retrying in %.2fs: %s",
                        attempt,
                        func.__name__,
                        wait,
                        str(e),
                    )
                    await asyncio.sleep(wait)
                    delay *= backoff_factor

        return wrapper

    return decorator
