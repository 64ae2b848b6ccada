"""
Text generation client - questions and summaries from the language model.

Wraps llm_client.chat_completion with the interview prompts and the command
catalog. A command with static text never reaches the provider.
"""

import asyncio
import logging
import time
from typing import Any, Optional

from tenq.config.commands import CommandCatalog
from tenq.domain.entities.message import Message
from tenq.domain.exceptions import CommandNotFoundError, GenerationFailedError
from tenq.domain.ports.text_generator import TextGenerator
from tenq.prompts import InterviewPrompts
from tenq.services.llm_client import (
    AsyncCircuitBreaker,
    chat_completion,
    classify_error,
    get_content,
)

logger = logging.getLogger(__name__)


class TextGenerationClient(TextGenerator):
    def __init__(
        self,
        client,
        breaker: AsyncCircuitBreaker,
        catalog: CommandCatalog,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.7,
        question_max_tokens: int = 150,
        summary_max_tokens: int = 500,
        call_timeout: Optional[float] = 60.0,
        health_timeout: float = 5.0,
    ):
        self.client = client
        self.breaker = breaker
        self.catalog = catalog
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.question_max_tokens = question_max_tokens
        self.summary_max_tokens = summary_max_tokens
        self.call_timeout = call_timeout
        self.health_timeout = health_timeout

    async def generate_question(
        self, history: list[Message], question_number: int
    ) -> str:
        command = self.catalog.get(question_number)
        if command is None:
            raise CommandNotFoundError(question_number)
        if command.is_static:
            return command.static_question

        messages = InterviewPrompts.build_question_messages(command, history)
        return await self._complete(messages, self.question_max_tokens, "question")

    async def generate_summary(self, history: list[Message]) -> str:
        messages = InterviewPrompts.build_summary_messages(history)
        return await self._complete(messages, self.summary_max_tokens, "summary")

    async def _complete(self, messages: list[dict], max_tokens: int, kind: str) -> str:
        response = await chat_completion(
            client=self.client,
            breaker=self.breaker,
            messages=messages,
            model=self.model,
            temperature=self.temperature,
            max_tokens=max_tokens,
            call_timeout=self.call_timeout,
        )
        # Empty content is our failure, not the provider's: the breaker saw a success
        content = (get_content(response) or "").strip()
        if not content:
            raise GenerationFailedError(f"Failed to generate {kind}: empty content")
        return content

    def breaker_state(self) -> str:
        return self.breaker.state

    async def check_health(self) -> dict[str, Any]:
        """Provider reachability; never raises."""
        if not self.api_key:
            return {"ok": False, "error": "not_configured"}

        state = self.breaker.state
        if state == AsyncCircuitBreaker.OPEN:
            return {
                "ok": False,
                "error": "circuit_breaker_open",
                "circuit_open": True,
                "circuit_state": state,
            }

        start = time.perf_counter()
        try:
            await asyncio.wait_for(self.client.models.list(), timeout=self.health_timeout)
        except Exception as e:
            error_type = classify_error(e)
            logger.warning("[LLM] Health check failed (%s): %s", error_type.value, e)
            return {
                "ok": False,
                "latency_ms": round((time.perf_counter() - start) * 1000),
                "error": error_type.value,
                "circuit_open": False,
                "circuit_state": state,
            }
        return {
            "ok": True,
            "latency_ms": round((time.perf_counter() - start) * 1000),
            "error": None,
            "circuit_open": False,
            "circuit_state": state,
        }
