import asyncio

import httpx
import pytest
from openai import (
    APIConnectionError,
    APITimeoutError,
    AuthenticationError,
    InternalServerError,
    RateLimitError,
)

from fakes import FakeOpenAI
from tenq.domain.exceptions import (
    CircuitOpenError,
    GenerationFailedError,
    GenerationTimeoutError,
)
from tenq.services.llm_client import (
    AsyncCircuitBreaker,
    ErrorType,
    chat_completion,
    classify_error,
    get_content,
)

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
MESSAGES = [{"role": "user", "content": "Hello"}]


def status_error(cls, status_code: int, message: str, code: str | None = None):
    return cls(
        message,
        response=httpx.Response(status_code, request=_REQUEST),
        body={"message": message, "code": code},
    )


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


def make_breaker(clock, **overrides) -> AsyncCircuitBreaker:
    options = {
        "error_threshold": 50,
        "volume_threshold": 3,
        "reset_timeout": 30,
        "rolling_window": 10,
        **overrides,
    }
    return AsyncCircuitBreaker(clock=clock, **options)


# ==================== ERROR CLASSIFICATION ====================


@pytest.mark.parametrize(
    "error, expected",
    [
        (
            status_error(
                RateLimitError, 429, "You exceeded your current quota", "insufficient_quota"
            ),
            ErrorType.QUOTA_EXCEEDED,
        ),
        (
            status_error(RateLimitError, 429, "Slow down", "rate_limit_exceeded"),
            ErrorType.RATE_LIMIT,
        ),
        (
            status_error(AuthenticationError, 401, "Incorrect API key provided"),
            ErrorType.INVALID_API_KEY,
        ),
        (APITimeoutError(request=_REQUEST), ErrorType.TIMEOUT),
        (asyncio.TimeoutError(), ErrorType.TIMEOUT),
        (status_error(InternalServerError, 503, "Overloaded"), ErrorType.SERVER_ERROR),
        (APIConnectionError(request=_REQUEST), ErrorType.NETWORK_ERROR),
        (ValueError("something odd"), ErrorType.UNKNOWN),
    ],
)
def test_classify_error(error, expected):
    assert classify_error(error) is expected


# ==================== CIRCUIT BREAKER ====================


async def test_breaker_opens_at_volume_and_error_rate(clock):
    breaker = make_breaker(clock)

    await breaker.record_failure(RuntimeError("boom"))
    await breaker.record_failure(RuntimeError("boom"))
    assert breaker.state == AsyncCircuitBreaker.CLOSED

    await breaker.record_failure(RuntimeError("boom"))
    assert breaker.state == AsyncCircuitBreaker.OPEN
    assert breaker.is_open
    with pytest.raises(CircuitOpenError):
        await breaker.check()


async def test_breaker_stays_closed_below_error_threshold(clock):
    breaker = make_breaker(clock, volume_threshold=4)

    for _ in range(3):
        await breaker.record_success()
    await breaker.record_failure(RuntimeError("boom"))

    assert breaker.state == AsyncCircuitBreaker.CLOSED


async def test_breaker_forgets_outcomes_outside_window(clock):
    breaker = make_breaker(clock)

    await breaker.record_failure(RuntimeError("boom"))
    await breaker.record_failure(RuntimeError("boom"))
    clock.advance(11)
    await breaker.record_failure(RuntimeError("boom"))

    assert breaker.state == AsyncCircuitBreaker.CLOSED


async def test_breaker_allows_one_trial_call_after_reset(clock):
    breaker = make_breaker(clock)
    for _ in range(3):
        await breaker.record_failure(RuntimeError("boom"))

    clock.advance(30)
    assert breaker.state == AsyncCircuitBreaker.HALF_OPEN

    assert await breaker.check() is True
    with pytest.raises(CircuitOpenError):
        await breaker.check()

    await breaker.record_success(trial=True)
    assert breaker.state == AsyncCircuitBreaker.CLOSED
    await breaker.check()


async def test_failed_trial_call_reopens(clock):
    breaker = make_breaker(clock)
    for _ in range(3):
        await breaker.record_failure(RuntimeError("boom"))
    clock.advance(30)
    await breaker.check()

    await breaker.record_failure(RuntimeError("still down"), trial=True)

    assert breaker.state == AsyncCircuitBreaker.OPEN
    clock.advance(29)
    assert breaker.state == AsyncCircuitBreaker.OPEN
    clock.advance(1)
    assert breaker.state == AsyncCircuitBreaker.HALF_OPEN


async def test_released_trial_slot_can_be_retaken(clock):
    breaker = make_breaker(clock)
    for _ in range(3):
        await breaker.record_failure(RuntimeError("boom"))
    clock.advance(30)
    await breaker.check()

    await breaker.release_trial()

    await breaker.check()


# ==================== GUARDED CALL ====================


async def test_chat_completion_returns_response():
    client = FakeOpenAI()
    client.completions.script("How are you?")

    response = await chat_completion(
        client, AsyncCircuitBreaker(), MESSAGES, model="gpt-4o", max_tokens=150
    )

    assert get_content(response) == "How are you?"
    assert client.completions.calls[0]["max_completion_tokens"] == 150
    assert client.completions.calls[0]["model"] == "gpt-4o"


async def test_open_breaker_makes_no_call(clock):
    client = FakeOpenAI()
    breaker = make_breaker(clock, volume_threshold=1)
    await breaker.record_failure(RuntimeError("boom"))

    with pytest.raises(CircuitOpenError):
        await chat_completion(client, breaker, MESSAGES, model="gpt-4o")

    assert client.completions.calls == []


async def test_outer_timeout_raises_and_counts_as_failure(clock):
    client = FakeOpenAI()
    client.completions.delay = 1.0
    breaker = make_breaker(clock, volume_threshold=1)

    with pytest.raises(GenerationTimeoutError):
        await chat_completion(
            client, breaker, MESSAGES, model="gpt-4o", call_timeout=0.01
        )

    assert breaker.state == AsyncCircuitBreaker.OPEN


async def test_sdk_timeout_maps_to_timeout_error():
    client = FakeOpenAI()
    client.completions.script(APITimeoutError(request=_REQUEST))

    with pytest.raises(GenerationTimeoutError):
        await chat_completion(client, AsyncCircuitBreaker(), MESSAGES, model="gpt-4o")


async def test_provider_error_maps_to_failed_error():
    client = FakeOpenAI()
    client.completions.script(status_error(RateLimitError, 429, "Slow down"))

    with pytest.raises(GenerationFailedError, match="rate_limit"):
        await chat_completion(client, AsyncCircuitBreaker(), MESSAGES, model="gpt-4o")


async def test_success_is_recorded_in_half_open(clock):
    client = FakeOpenAI()
    breaker = make_breaker(clock, volume_threshold=1)
    await breaker.record_failure(RuntimeError("boom"))
    clock.advance(30)

    await chat_completion(client, breaker, MESSAGES, model="gpt-4o")

    assert breaker.state == AsyncCircuitBreaker.CLOSED


async def test_three_failures_then_fast_fail_then_recovery(clock):
    client = FakeOpenAI()
    breaker = make_breaker(clock)
    client.completions.script(*[RuntimeError("provider down")] * 3)

    for _ in range(3):
        with pytest.raises(GenerationFailedError):
            await chat_completion(client, breaker, MESSAGES, model="gpt-4o")
    with pytest.raises(CircuitOpenError):
        await chat_completion(client, breaker, MESSAGES, model="gpt-4o")
    assert len(client.completions.calls) == 3

    clock.advance(30)
    response = await chat_completion(client, breaker, MESSAGES, model="gpt-4o")

    assert get_content(response) == "Generated text 4?"
    assert breaker.state == AsyncCircuitBreaker.CLOSED


async def test_closed_calls_do_not_decide_half_open(clock):
    breaker = make_breaker(clock)
    assert await breaker.check() is False
    for _ in range(3):
        await breaker.record_failure(RuntimeError("boom"))
    clock.advance(30)
    assert await breaker.check() is True

    # An outcome of the call admitted while closed arrives during the trial call
    await breaker.record_success()
    await breaker.record_failure(RuntimeError("late"))

    assert breaker.state == AsyncCircuitBreaker.HALF_OPEN
    with pytest.raises(CircuitOpenError):
        await breaker.check()


async def test_cancelled_closed_call_keeps_trial_slot(clock):
    client = FakeOpenAI()
    client.completions.delay = 10
    breaker = make_breaker(clock)

    admitted_while_closed = asyncio.create_task(
        chat_completion(client, breaker, MESSAGES, model="gpt-4o")
    )
    await asyncio.sleep(0.01)
    for _ in range(3):
        await breaker.record_failure(RuntimeError("boom"))
    clock.advance(30)
    trial = asyncio.create_task(chat_completion(client, breaker, MESSAGES, model="gpt-4o"))
    await asyncio.sleep(0.01)
    assert len(client.completions.calls) == 2

    admitted_while_closed.cancel()
    with pytest.raises(asyncio.CancelledError):
        await admitted_while_closed

    with pytest.raises(CircuitOpenError):
        await chat_completion(client, breaker, MESSAGES, model="gpt-4o")
    assert len(client.completions.calls) == 2

    trial.cancel()
    with pytest.raises(asyncio.CancelledError):
        await trial

    # Cancelling the trial call itself frees the slot
    assert await breaker.check() is True
