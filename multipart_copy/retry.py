"""Retry logic with exponential backoff for transient S3 failures.

Used by the S3 backend around idempotent calls (part copies and part
listings). Errors are classified so that only transient failures are retried.

Transient (Retryable):
- Endpoint connection errors and timeouts
- Server errors (5xx)
- Throttling (SlowDown, Throttling, 503)

Permanent (Not Retryable):
- Client errors (4xx except throttling)
- Access denied, missing bucket/key, missing upload
"""

import time
from typing import Any, Callable, Optional, Sequence

from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

# S3 error codes that indicate transient server issues
RETRYABLE_ERROR_CODES = {
    "InternalError",
    "RequestTimeout",
    "ServiceUnavailable",
    "SlowDown",
    "Throttling",
    "ThrottlingException",
}

# HTTP status codes that indicate transient server issues
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

DEFAULT_RETRY_DELAYS = (0.5, 1.0, 2.0)


class RetryExhausted(Exception):
    """Raised when all retry attempts have been exhausted."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


def is_retryable_error(error: Exception) -> bool:
    """Determine if an error is transient and worth retrying.

    Args:
        error: The exception that was raised.

    Returns:
        True if the error is transient and should trigger a retry,
        False if the error is permanent and retrying won't help.
    """
    # Network-level errors are transient
    if isinstance(error, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return True

    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code")
        if code in RETRYABLE_ERROR_CODES:
            return True
        status_code = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return status_code in RETRYABLE_STATUS_CODES

    return False


def retry_with_backoff(
    func: Callable[..., Any],
    max_attempts: int = 3,
    delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
    args: tuple = (),
    kwargs: Optional[dict] = None,
) -> Any:
    """Execute a function with retry logic and exponential backoff.

    Args:
        func: The function to execute.
        max_attempts: Maximum number of attempts (including first try).
        delays: Sequence of delay times (seconds) between retries.
                delays[0] is used after first failure, etc.
        args: Positional arguments to pass to func.
        kwargs: Keyword arguments to pass to func.

    Returns:
        The return value of func if successful.

    Raises:
        RetryExhausted: If all attempts fail with retryable errors.
        Exception: If a non-retryable error occurs, it's raised immediately.

    Example:
        >>> response = retry_with_backoff(
        ...     s3_client.upload_part_copy,
        ...     max_attempts=3,
        ...     kwargs={"Bucket": "dest", "Key": "copy.bin", ...},
        ... )
    """
    if kwargs is None:
        kwargs = {}

    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            last_error = e

            if not is_retryable_error(e):
                raise

            if attempt >= max_attempts:
                raise RetryExhausted(
                    f"Operation failed after {max_attempts} attempts: {e}",
                    attempts=max_attempts,
                    last_error=last_error,
                ) from last_error

            delay_index = min(attempt - 1, len(delays) - 1)
            time.sleep(delays[delay_index])

    raise RetryExhausted(
        f"Operation failed after {max_attempts} attempts",
        attempts=max_attempts,
        last_error=last_error,
    )
