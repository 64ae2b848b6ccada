"""
Centralized LLM client wrapper (async).

Uses AsyncOpenAI for non-blocking LLM calls, guarded by a process-wide
circuit breaker and an outer call timeout.

Usage:
    from tenq.services.llm_client import chat_completion, get_content

    response = await chat_completion(
        client=openai_client,
        breaker=breaker,
        messages=[{"role": "user", "content": "Hello"}],
        model="gpt-4o",
        max_tokens=150,
    )
    print(get_content(response))

The client and the breaker are built once by the DI container
(setup/ioc/container.py) and passed in; this module keeps no globals.
"""

import asyncio
import logging
import time
from collections import deque
from enum import Enum
from typing import Any, Callable, Optional

from httpx import Timeout
from langsmith import traceable
from openai import (
    AsyncOpenAI,
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
)

from tenq.domain.exceptions import (
    CircuitOpenError,
    GenerationFailedError,
    GenerationTimeoutError,
)
from tenq.observability.metrics import (
    increment_llm_error,
    observe_llm_tokens,
    set_circuit_state,
)

logger = logging.getLogger(__name__)


def build_openai_client(
    api_key: str,
    timeout_seconds: float,
    connect_timeout_seconds: float,
    max_retries: int,
) -> AsyncOpenAI:
    """Client with a per-attempt timeout and the SDK's bounded retries."""
    return AsyncOpenAI(
        # The SDK refuses to construct without a key; health reports not_configured
        api_key=api_key or "not-configured",
        max_retries=max_retries,
        timeout=Timeout(timeout_seconds, connect=connect_timeout_seconds),
    )


# ============ Error classification ============


class ErrorType(str, Enum):
    QUOTA_EXCEEDED = "quota_exceeded"
    RATE_LIMIT = "rate_limit"
    INVALID_API_KEY = "invalid_api_key"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


def classify_error(error: BaseException) -> ErrorType:
    """Map a provider failure to an ErrorType from its status, code and message."""
    message = str(error).lower()
    code = str(getattr(error, "code", "") or "").lower()
    status = error.status_code if isinstance(error, APIStatusError) else None

    if "insufficient_quota" in code or any(
        s in message for s in ("insufficient_quota", "quota", "billing")
    ):
        return ErrorType.QUOTA_EXCEEDED
    if status == 429 or any(s in message for s in ("rate_limit", "rate limit", "429")):
        return ErrorType.RATE_LIMIT
    if status == 401 or any(
        s in message for s in ("invalid_api_key", "unauthorized", "401")
    ):
        return ErrorType.INVALID_API_KEY
    if isinstance(
        error, (APITimeoutError, asyncio.TimeoutError, GenerationTimeoutError)
    ) or any(s in message for s in ("timeout", "timed out")):
        return ErrorType.TIMEOUT
    if (status is not None and status >= 500) or any(
        s in message for s in ("500", "502", "503", "504")
    ):
        return ErrorType.SERVER_ERROR
    if isinstance(error, APIConnectionError) or any(
        s in message for s in ("network", "econnrefused", "enotfound", "connection")
    ):
        return ErrorType.NETWORK_ERROR
    return ErrorType.UNKNOWN


# ============ Circuit breaker ============


class AsyncCircuitBreaker:
    """CLOSED → (error % over rolling window) → OPEN → (reset) → HALF_OPEN → (1 trial call) → CLOSED.

    The breaker opens after a failure when the rolling window holds at least
    `volume_threshold` calls and at least `error_threshold` percent of them
    failed. While half-open exactly one trial call is let through.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        error_threshold: float = 50.0,
        volume_threshold: int = 10,
        reset_timeout: float = 60.0,
        rolling_window: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._error_threshold = error_threshold
        self._volume_threshold = volume_threshold
        self._reset_timeout = reset_timeout
        self._rolling_window = rolling_window
        self._clock = clock
        self._outcomes: deque[tuple[float, bool]] = deque()
        self._opened_at: float = 0.0
        self._state = self.CLOSED
        self._trial_in_flight = False
        self._lock = asyncio.Lock()
        set_circuit_state(self._state)

    @property
    def state(self) -> str:
        """Reported state; an open breaker past its reset timeout reads half_open."""
        if self._state == self.OPEN and self._reset_elapsed():
            return self.HALF_OPEN
        return self._state

    @property
    def is_open(self) -> bool:
        return self.state == self.OPEN

    def _reset_elapsed(self) -> bool:
        return self._clock() - self._opened_at >= self._reset_timeout

    def _prune(self) -> None:
        horizon = self._clock() - self._rolling_window
        while self._outcomes and self._outcomes[0][0] < horizon:
            self._outcomes.popleft()

    def _transition(self, state: str) -> None:
        self._state = state
        set_circuit_state(state)

    async def check(self) -> bool:
        """Admit or reject a call; True when the call holds the half-open trial slot."""
        async with self._lock:
            if self._state == self.CLOSED:
                return False
            if self._state == self.OPEN:
                if self._reset_elapsed():
                    self._transition(self.HALF_OPEN)
                    self._trial_in_flight = True
                    logger.warning(
                        "[CircuitBreaker] OPEN → HALF_OPEN (allowing one test request)"
                    )
                    return True
                logger.warning("[CircuitBreaker] Call rejected, circuit open")
                raise CircuitOpenError("LLM circuit open")
            # half_open: only one test request allowed; block the rest
            if self._trial_in_flight:
                logger.warning("[CircuitBreaker] Call rejected, trial call in progress")
                raise CircuitOpenError("LLM circuit half-open, test request in progress")
            self._trial_in_flight = True
            return True

    async def record_success(self, trial: bool = False) -> None:
        async with self._lock:
            if self._state == self.HALF_OPEN:
                if not trial:
                    # Admitted before the circuit opened; only the trial call decides
                    return
                logger.info("[CircuitBreaker] HALF_OPEN → CLOSED")
                self._trial_in_flight = False
                self._outcomes.clear()
                self._transition(self.CLOSED)
                return
            self._outcomes.append((self._clock(), True))
            self._prune()

    async def record_failure(self, error: BaseException, trial: bool = False) -> None:
        async with self._lock:
            if self._state == self.HALF_OPEN:
                if not trial:
                    return
                self._trial_in_flight = False
                self._opened_at = self._clock()
                self._transition(self.OPEN)
                logger.error(
                    "[CircuitBreaker] HALF_OPEN → OPEN (trial call failed: %s)",
                    type(error).__name__,
                )
                return
            if self._state == self.OPEN:
                return
            self._outcomes.append((self._clock(), False))
            self._prune()
            total = len(self._outcomes)
            failures = sum(1 for _, ok in self._outcomes if not ok)
            if total >= self._volume_threshold and (
                failures * 100.0 / total >= self._error_threshold
            ):
                self._opened_at = self._clock()
                self._transition(self.OPEN)
                logger.error(
                    "[CircuitBreaker] → OPEN (%d/%d calls failed in window)",
                    failures,
                    total,
                )

    async def release_trial(self) -> None:
        """Give back the half-open trial slot; only the holder of the slot calls this."""
        async with self._lock:
            if self._state == self.HALF_OPEN:
                self._trial_in_flight = False


# ============ Guarded call ============


@traceable(run_type="llm", name="chat_completion")
async def chat_completion(
    client,
    breaker: AsyncCircuitBreaker,
    messages: list[dict],
    model: str,
    temperature: float = 0.7,
    max_tokens: int = 150,
    call_timeout: Optional[float] = None,
) -> Any:
    """Chat completion behind the circuit breaker.

    Args:
        client: AsyncOpenAI client instance
        breaker: The process-wide AsyncCircuitBreaker
        messages: List of message dicts [{"role": "user", "content": "..."}]
        model: Model name (e.g., "gpt-4o")
        temperature: Sampling temperature
        max_tokens: Max tokens to generate
        call_timeout: Outer bound in seconds on the whole call, SDK retries included

    Returns:
        OpenAI ChatCompletion response

    Raises:
        CircuitOpenError: breaker is open, no request was made
        GenerationTimeoutError: the SDK or the outer bound timed out
        GenerationFailedError: any other provider failure
    """
    trial = await breaker.check()
    try:
        response = await asyncio.wait_for(
            client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_completion_tokens=max_tokens,
            ),
            timeout=call_timeout,
        )
    except asyncio.CancelledError:
        if trial:
            await breaker.release_trial()
        raise
    except Exception as e:
        await breaker.record_failure(e, trial=trial)
        error_type = classify_error(e)
        increment_llm_error(error_type.value)
        logger.error("[LLM] %s call failed (%s): %s", model, error_type.value, e)
        if error_type is ErrorType.QUOTA_EXCEEDED:
            logger.critical("[LLM] OpenAI quota exhausted, check billing for the API key")
        if isinstance(e, (APITimeoutError, asyncio.TimeoutError)):
            raise GenerationTimeoutError(f"LLM call timed out after {call_timeout}s") from e
        raise GenerationFailedError(f"LLM call failed: {error_type.value}") from e

    await breaker.record_success(trial=trial)
    usage = getattr(response, "usage", None)
    if usage:
        observe_llm_tokens("input", model, usage.prompt_tokens)
        observe_llm_tokens("output", model, usage.completion_tokens)
    return response


# ============ Helper functions ============


def get_content(response) -> Optional[str]:
    """Extract text content from response."""
    if response.choices and response.choices[0].message:
        return response.choices[0].message.content
    return None
