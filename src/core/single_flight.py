import asyncio
import logging
from functools import wraps

_log = logging.getLogger(__name__)


def once(fn):
    """
    Lock-free lazy initialiser for a zero-argument coroutine.

    The first caller starts `fn` as a task; concurrent callers await that same
    task. A non-None result is cached for the life of the process (or until
    `wrapper.reset()`). A None result or an exception is not cached, so the
    next call retries.
    """
    in_flight = None
    result = None

    @wraps(fn)
    async def wrapper():
        nonlocal in_flight, result
        if result is not None:
            return result
        if in_flight is None:
            _log.debug(f"Creating task for {fn.__name__}")
            in_flight = asyncio.create_task(fn())

        task = in_flight
        try:
            value = await task
            result = value
            return value
        finally:
            # Only the task that is still registered gets cleared.
            if in_flight is task:
                in_flight = None

    async def reset():
        """Cancels any in-flight creation and returns the cached value, forgetting it."""
        nonlocal result, in_flight
        _log.debug(f"Resetting cached value for {fn.__name__}")
        if in_flight and not in_flight.done():
            in_flight.cancel()
            try:
                await in_flight
            except asyncio.CancelledError:
                _log.debug(f"Cancelled in-flight task for {fn.__name__}")
            except Exception as e:
                _log.warning(f"Error awaiting cancelled task for {fn.__name__}: {e}")
        in_flight = None
        previous = result
        result = None
        return previous

    wrapper.reset = reset  # type: ignore
    return wrapper
