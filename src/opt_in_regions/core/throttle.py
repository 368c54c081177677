"""Throttling back-off for AWS API calls.

Wraps a single API call and retries it with exponential back-off and full
jitter while AWS keeps answering with a throttling error. Any other
failure is propagated unchanged on the first attempt.
"""

import logging
import random
import time
from typing import Callable, Optional, TypeVar

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from .errors import ThrottlingError


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_BASE_DELAY = 0.15
DEFAULT_MAX_DELAY = 20.0

THROTTLING_ERROR_CODES = frozenset([
    "Throttling",
    "ThrottlingException",
    "ThrottledException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "RequestThrottled",
    "RequestThrottledException",
    "SlowDown",
    "LimitExceededException",
    "ConcurrentModificationException",
    "InternalErrorException",
    "InternalException",
    "ServiceUnavailable",
    "ServiceUnavailableException",
])

TRANSIENT_CONNECTION_ERRORS = (
    ConnectionClosedError,
    EndpointConnectionError,
    ReadTimeoutError,
)


def is_throttling_error(error: BaseException) -> bool:
    """Check whether an error should be retried by the back-off.

    Args:
        error: Exception raised by an AWS API call

    Returns:
        True for throttling responses and transient connection failures
    """
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        return code in THROTTLING_ERROR_CODES
    return isinstance(error, TRANSIENT_CONNECTION_ERRORS)


def throttling_backoff(
    func: Callable[[], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """Call ``func`` and retry it while AWS throttles the request.

    Args:
        func: Zero-argument callable performing one API call
        max_attempts: Total number of attempts including the first one
        base_delay: Delay ceiling in seconds for the first retry
        max_delay: Upper bound for any single delay in seconds
        sleep: Sleep function, defaults to time.sleep

    Returns:
        Whatever ``func`` returns

    Raises:
        ThrottlingError: When every attempt was throttled
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except (ClientError, *TRANSIENT_CONNECTION_ERRORS) as e:
            if not is_throttling_error(e):
                raise
            if attempt >= max_attempts:
                raise ThrottlingError(
                    f"Request still throttled after {attempt} attempts: {e}",
                    attempts=attempt,
                ) from e

            ceiling = min(max_delay, base_delay * (2 ** (attempt - 1)))
            delay = random.uniform(0, ceiling)
            logger.debug(
                f"Throttled on attempt {attempt}/{max_attempts}, "
                f"retrying in {delay:.2f}s: {e}"
            )
            (sleep or time.sleep)(delay)
