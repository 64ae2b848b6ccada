"""
MessageId Value Object - Store-assigned, increasing in insert order.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class MessageId:
    value: int

    def __post_init__(self):
        if self.value < 1:
            raise ValueError(f"Message ID must be positive: {self.value}")

    def __str__(self) -> str:
        return str(self.value)
