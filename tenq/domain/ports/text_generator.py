"""
Text Generator Port - Interface for question and summary generation.
Implementation: tenq/services/text_generation.py
"""

from abc import ABC, abstractmethod
from typing import Any

from tenq.domain.entities.message import Message


class TextGenerator(ABC):
    @abstractmethod
    async def generate_question(
        self, history: list[Message], question_number: int
    ) -> str: ...

    @abstractmethod
    async def generate_summary(self, history: list[Message]) -> str: ...

    @abstractmethod
    async def check_health(self) -> dict[str, Any]: ...

    @abstractmethod
    def breaker_state(self) -> str: ...
