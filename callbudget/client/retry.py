"""Retry policy for idempotent API reads."""
import time
from typing import Callable, Optional

import requests

from callbudget.app.logger import get_logger

logger = get_logger("client.retry")

RETRYABLE_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


class RetryPolicy:
    """Retry a request on connection errors, timeouts and 5xx responses.

    Waits ``base_delay * factor ** (attempt - 1)`` seconds between attempts.
    Only use it for reads; retrying a create could record it twice.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        factor: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.factor = factor
        self.sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * self.factor ** (attempt - 1)

    def call(self, fn: Callable[[], requests.Response]) -> requests.Response:
        """Run ``fn``; the last response or error is returned or raised as-is"""
        attempt = 1
        while True:
            last_attempt = attempt >= self.max_attempts
            error: Optional[Exception] = None
            try:
                response = fn()
            except RETRYABLE_ERRORS as exc:
                if last_attempt:
                    raise
                error = exc
            else:
                if response.status_code < 500 or last_attempt:
                    return response
            delay = self.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d failed (%s), retrying in %.2fs",
                attempt, self.max_attempts,
                error if error is not None else f"HTTP {response.status_code}",
                delay,
            )
            self.sleep(delay)
            attempt += 1
