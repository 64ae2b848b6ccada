"""
Command Entity - One of the ten fixed question-generation configurations.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Command:
    number: int
    name: str
    prompt: str
    static_question: Optional[str] = None

    def __post_init__(self):
        if not 1 <= self.number <= 10:
            raise ValueError(f"Command number must be between 1 and 10: {self.number}")
        if not self.name or not self.prompt:
            raise ValueError(f"Command {self.number} needs a name and a prompt")

    @property
    def is_static(self) -> bool:
        return bool(self.static_question)
