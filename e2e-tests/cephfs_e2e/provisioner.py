"""Bounded polling and retrying creation of Kubernetes objects."""

import logging
import time
from typing import Callable

from .errors import ApiError, PermanentError, PollTimeoutError

logger = logging.getLogger(__name__)

RETRYABLE_REASONS = {
    "InternalError",
    "Timeout",
    "ServerTimeout",
    "TooManyRequests",
    "ServiceUnavailable",
}

RETRYABLE_MESSAGES = (
    "etcdserver: request timed out",
    "unable to upgrade connection",
    "transport is closing",
    "transport: missing content-type field",
    "connection reset by peer",
    "unexpected EOF",
    "connection refused",
)


def is_retryable_api_error(err: Exception) -> bool:
    """Return True for errors that indicate a transient API server problem."""
    if isinstance(err, ApiError) and err.reason in RETRYABLE_REASONS:
        return True
    message = str(err)
    return any(fragment in message for fragment in RETRYABLE_MESSAGES)


def is_already_exists(err: Exception) -> bool:
    return isinstance(err, ApiError) and err.reason == "AlreadyExists"


def poll_immediate(
    condition: Callable[[], bool],
    interval: float,
    timeout: float,
    description: str = "condition",
) -> None:
    """Check a condition now, then every interval until it holds.

    Exceptions raised by the condition abort polling and propagate.

    Args:
        condition: Callable returning True when done
        interval: Seconds between checks
        timeout: Total seconds to wait
        description: Used in the timeout message

    Raises:
        PollTimeoutError: Condition still false after timeout
    """
    deadline = time.monotonic() + timeout
    while True:
        if condition():
            return
        if time.monotonic() >= deadline:
            raise PollTimeoutError(f"timed out after {timeout}s waiting for {description}")
        time.sleep(interval)


def ensure_created(
    create: Callable[[], object],
    name: str,
    timeout: float,
    interval: float,
    is_retryable: Callable[[Exception], bool] = is_retryable_api_error,
) -> bool:
    """Create an object, retrying transient failures until timeout.

    An object that already exists counts as created. Partially applied
    state is left as is.

    Args:
        create: Callable performing one creation attempt
        name: Object description for messages
        timeout: Total seconds to keep trying
        interval: Seconds between attempts
        is_retryable: Predicate deciding whether a failure is transient

    Returns:
        True if this call created the object, False if it already existed

    Raises:
        PermanentError: An attempt failed with a non-retryable error
        PollTimeoutError: No attempt succeeded before timeout, chained to
            the last transient error
    """
    last_error: Exception | None = None
    existed = False

    def attempt() -> bool:
        nonlocal last_error, existed
        try:
            create()
        except Exception as e:
            if is_already_exists(e):
                logger.info("%s already exists", name)
                existed = True
                return True
            logger.warning("error creating %s: %s", name, e)
            if is_retryable(e):
                last_error = e
                return False
            raise PermanentError(f"failed to create {name}: {e}") from e
        return True

    try:
        poll_immediate(attempt, interval, timeout, description=f"creation of {name}")
    except PollTimeoutError as e:
        raise PollTimeoutError(f"{e}: last error: {last_error}") from last_error
    return not existed
