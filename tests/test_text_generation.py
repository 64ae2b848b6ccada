from datetime import datetime, timezone

import httpx
import pytest
from openai import AuthenticationError

from fakes import FakeOpenAI
from tenq.config.commands import load_commands
from tenq.domain.entities.message import QuestionMessage, ResponseMessage
from tenq.domain.exceptions import (
    CircuitOpenError,
    CommandNotFoundError,
    GenerationFailedError,
)
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.message_id import MessageId
from tenq.prompts import InterviewPrompts
from tenq.services.llm_client import AsyncCircuitBreaker
from tenq.services.text_generation import TextGenerationClient

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def history(answered: int) -> list:
    conversation_id = ConversationId.generate()
    messages = []
    for n in range(1, answered + 1):
        messages.append(
            QuestionMessage(MessageId(2 * n - 1), conversation_id, f"Question {n}?", NOW, n)
        )
        messages.append(
            ResponseMessage(MessageId(2 * n), conversation_id, f"Answer {n}", NOW, n)
        )
    return messages


@pytest.fixture()
def openai_client():
    return FakeOpenAI()


@pytest.fixture()
def breaker():
    return AsyncCircuitBreaker(volume_threshold=1)


@pytest.fixture()
def generator(openai_client, breaker):
    return TextGenerationClient(
        client=openai_client,
        breaker=breaker,
        catalog=load_commands(),
        api_key="test-key",
        model="gpt-4o",
        question_max_tokens=150,
        summary_max_tokens=500,
    )


async def test_static_first_question_skips_provider(generator, openai_client):
    question = await generator.generate_question([], 1)

    assert question == "What brings you to explore this topic right now?"
    assert openai_client.completions.calls == []


async def test_question_prompt_layout(generator, openai_client):
    openai_client.completions.script("  What feels most alive in this for you?  ")

    question = await generator.generate_question(history(2), 3)

    assert question == "What feels most alive in this for you?"
    call = openai_client.completions.calls[0]
    assert call["max_completion_tokens"] == 150
    messages = call["messages"]
    assert messages[0] == {"role": "system", "content": InterviewPrompts.QUESTION_SYSTEM}
    assert messages[1]["role"] == "system"
    assert "Question 3/10" in messages[1]["content"]
    assert [m["role"] for m in messages[2:6]] == ["assistant", "user", "assistant", "user"]
    assert messages[3]["content"] == "Answer 1"
    assert messages[-1]["content"].startswith("Generate question 3 of 10")


async def test_summary_prompt_contains_transcript(generator, openai_client):
    openai_client.completions.script("You explored a lot.")

    summary = await generator.generate_summary(history(10))

    assert summary == "You explored a lot."
    call = openai_client.completions.calls[0]
    assert call["max_completion_tokens"] == 500
    assert call["messages"][0]["content"] == InterviewPrompts.SUMMARY_SYSTEM
    assert "Question 10: Question 10?" in call["messages"][1]["content"]
    assert "Response: Answer 7" in call["messages"][1]["content"]


async def test_empty_content_fails_without_tripping_breaker(generator, openai_client, breaker):
    openai_client.completions.script("   ")

    with pytest.raises(GenerationFailedError):
        await generator.generate_question(history(1), 2)

    assert breaker.state == AsyncCircuitBreaker.CLOSED


async def test_unknown_command(generator):
    with pytest.raises(CommandNotFoundError):
        await generator.generate_question(history(10), 11)


async def test_open_breaker_fails_fast(generator, openai_client):
    openai_client.completions.script(RuntimeError("provider down"))
    with pytest.raises(GenerationFailedError):
        await generator.generate_question(history(1), 2)

    with pytest.raises(CircuitOpenError):
        await generator.generate_question(history(1), 2)

    assert len(openai_client.completions.calls) == 1
    assert generator.breaker_state() == AsyncCircuitBreaker.OPEN


# ==================== HEALTH ====================


async def test_health_without_key(openai_client, breaker):
    generator = TextGenerationClient(
        client=openai_client, breaker=breaker, catalog=load_commands(), api_key=""
    )

    assert await generator.check_health() == {"ok": False, "error": "not_configured"}
    assert openai_client.models.calls == 0


async def test_health_reports_open_breaker(generator, breaker, openai_client):
    await breaker.record_failure(RuntimeError("boom"))

    health = await generator.check_health()

    assert health["ok"] is False
    assert health["error"] == "circuit_breaker_open"
    assert health["circuit_open"] is True
    assert openai_client.models.calls == 0


async def test_health_ok(generator, openai_client):
    health = await generator.check_health()

    assert health["ok"] is True
    assert health["circuit_state"] == "closed"
    assert health["latency_ms"] >= 0
    assert openai_client.models.calls == 1


async def test_health_classifies_provider_error(generator, openai_client, breaker):
    request = httpx.Request("GET", "https://api.openai.com/v1/models")
    openai_client.models.error = AuthenticationError(
        "Incorrect API key provided",
        response=httpx.Response(401, request=request),
        body=None,
    )

    health = await generator.check_health()

    assert health["ok"] is False
    assert health["error"] == "invalid_api_key"
    # Health checks do not count toward the breaker
    assert breaker.state == AsyncCircuitBreaker.CLOSED
