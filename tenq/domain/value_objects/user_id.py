"""
UserId Value Object - Subject of the caller's token.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserId:
    value: str  # user_id, as issued by the identity provider

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValueError("UserId cannot be empty")

    def __str__(self) -> str:
        return self.value
