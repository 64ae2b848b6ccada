"""
Admission control for response submission.

- Rate limit: slowapi fixed window per caller (token subject, falling back to
  the client address), "N per W seconds" from Config. Exceeding it raises
  RateLimitExceeded, rendered as 429 by the app factory.
- Concurrency limit: at most RESPONSE_CONCURRENCY_MAX submissions in flight
  process-wide. Requests over the limit are rejected with 503, never queued.
  The slot is released when the request ends, however it ends.
"""

import logging

from fastapi import HTTPException, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from tenq.config.settings import Config
from tenq.observability.metrics import (
    AdmissionRejection,
    decrement_active_submissions,
    increment_active_submissions,
    increment_admission_rejection,
)

logger = logging.getLogger(__name__)


def caller_key(request: Request) -> str:
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=caller_key,
    storage_uri=Config.RATELIMIT_STORAGE_URI,
    strategy="fixed-window",
)


class ConcurrencyLimiter:
    """Non-queuing counter of in-flight requests."""

    def __init__(self, max_concurrent: int):
        self.max_concurrent = max_concurrent
        self._active = 0

    @property
    def active(self) -> int:
        return self._active

    def try_acquire(self) -> bool:
        # No await between check and increment: atomic on the event loop
        if self._active >= self.max_concurrent:
            return False
        self._active += 1
        return True

    def release(self) -> None:
        if self._active > 0:
            self._active -= 1


async def limit_concurrency(request: Request):
    """Yield dependency holding one concurrency slot for the request's lifetime."""
    concurrency: ConcurrencyLimiter = request.app.state.concurrency_limiter
    if not concurrency.try_acquire():
        increment_admission_rejection(AdmissionRejection.BUSY)
        logger.warning(
            "Submission rejected: %d/%d in flight",
            concurrency.active,
            concurrency.max_concurrent,
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Server busy"
        )
    increment_active_submissions()
    try:
        yield
    finally:
        concurrency.release()
        decrement_active_submissions()
