"""Bounded, delay-free retry control for content-shape failures."""

from __future__ import annotations

import logging
from collections.abc import Callable

from tenacity import AsyncRetrying
from tenacity import RetryCallState
from tenacity import RetryError
from tenacity import retry_if_exception_type
from tenacity import stop_after_attempt
from tenacity import wait_none

logger = logging.getLogger(__name__)


class RetryPolicy:
    """Allows ``max_retries`` further attempts after the first one, without backoff.

    Rejections are about the shape of generated text, not infrastructure
    health, so there is nothing to wait for between attempts. Only exceptions
    listed in ``retry_on`` consume a retry; anything else propagates at once.
    """

    def __init__(self, max_retries: int, retry_on: tuple[type[BaseException], ...], label: str):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.retry_on = retry_on
        self.label = label

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def _log_retry(self, request_id: str) -> Callable[[RetryCallState], None]:
        def _before_sleep(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "[%s] %s attempt %d/%d rejected: %s",
                request_id,
                self.label,
                retry_state.attempt_number,
                self.max_attempts,
                exc,
            )

        return _before_sleep

    def attempts(self, request_id: str) -> AsyncRetrying:
        """Iterate over attempts; raises tenacity.RetryError once the bound is exhausted."""
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_none(),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=self._log_retry(request_id),
        )

    @staticmethod
    def last_failure(error: RetryError) -> tuple[int, str]:
        """Attempt count and message of the final failure behind *error*."""
        last = error.last_attempt
        exc = last.exception()
        return last.attempt_number, str(exc) if exc else "unknown failure"
