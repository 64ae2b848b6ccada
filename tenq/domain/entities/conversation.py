"""
Conversation Entity - A guided ten-question interview owned by one user.

Stages, in order:

    EMPTY (q=0)
      -> AWAITING_RESPONSE (q=1)  -> AWAITING_NEXT_QUESTION (q=1, answered)
      -> AWAITING_RESPONSE (q=2)  -> ...
      -> AWAITING_RESPONSE (q=10) -> AWAITING_SUMMARY (q=10, answered)
      -> COMPLETED

EMPTY, AWAITING_NEXT_QUESTION and AWAITING_SUMMARY are only observable
after a generation failure; each is resumable.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from tenq.domain.entities.message import (
    Message,
    QuestionMessage,
    ResponseMessage,
    SummaryMessage,
)
from tenq.domain.exceptions import (
    ConversationAlreadyCompletedError,
    ConversationNotCompletedError,
    DomainValidationError,
    NoActiveQuestionError,
    NothingToRetryError,
    QuestionAlreadyAnsweredError,
)
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.user_id import UserId

TOTAL_QUESTIONS = 10


@dataclass(frozen=True)
class ConversationLimits:
    """Length bounds for caller input and generated text."""

    max_title_length: int = 50
    max_response_length: int = 2000
    max_question_length: int = 2000
    max_summary_length: int = 10000


class ConversationStage(str, Enum):
    EMPTY = "empty"
    AWAITING_RESPONSE = "awaiting_response"
    AWAITING_NEXT_QUESTION = "awaiting_next_question"
    AWAITING_SUMMARY = "awaiting_summary"
    COMPLETED = "completed"


def validate_title(title: Optional[str], max_length: int) -> str:
    """Return the trimmed title or raise DomainValidationError."""
    trimmed = (title or "").strip()
    if not trimmed:
        raise DomainValidationError("Title is required")
    if len(trimmed) > max_length:
        raise DomainValidationError(f"Title must be {max_length} characters or less")
    return trimmed


def validate_response(text: Optional[str], max_length: int) -> str:
    """Return the trimmed response or raise DomainValidationError."""
    trimmed = (text or "").strip()
    if not trimmed:
        raise DomainValidationError("Response is required")
    if len(trimmed) > max_length:
        raise DomainValidationError(
            f"Response must be {max_length} characters or less"
        )
    return trimmed


@dataclass
class Conversation:
    id: ConversationId
    user_id: UserId
    title: str
    created_at: datetime
    summary: Optional[str] = None
    completed: bool = False
    current_question_number: int = 0

    def __post_init__(self):
        if not 0 <= self.current_question_number <= TOTAL_QUESTIONS:
            raise ValueError(
                f"Invalid question number: {self.current_question_number}"
            )
        if self.completed and (
            self.summary is None or self.current_question_number != TOTAL_QUESTIONS
        ):
            raise ValueError("A completed conversation needs a summary at question 10")

    @classmethod
    def create(cls, user_id: UserId, title: str) -> Conversation:
        """Factory method for a new, empty conversation."""
        return cls(
            id=ConversationId.generate(),
            user_id=user_id,
            title=title,
            created_at=datetime.now(timezone.utc),
        )

    @property
    def is_final_question(self) -> bool:
        return self.current_question_number >= TOTAL_QUESTIONS


@dataclass
class ConversationWithMessages:
    conversation: Conversation
    messages: list[Message] = field(default_factory=list)

    def question_at(self, number: int) -> Optional[QuestionMessage]:
        for message in self.messages:
            if isinstance(message, QuestionMessage) and message.question_number == number:
                return message
        return None

    def response_at(self, number: int) -> Optional[ResponseMessage]:
        for message in self.messages:
            if isinstance(message, ResponseMessage) and message.question_number == number:
                return message
        return None

    @property
    def summaries(self) -> list[SummaryMessage]:
        return [m for m in self.messages if isinstance(m, SummaryMessage)]

    @property
    def stage(self) -> ConversationStage:
        conversation = self.conversation
        current = conversation.current_question_number
        if conversation.completed:
            return ConversationStage.COMPLETED
        if current == 0:
            return ConversationStage.EMPTY
        if self.response_at(current) is None:
            return ConversationStage.AWAITING_RESPONSE
        if conversation.is_final_question:
            return ConversationStage.AWAITING_SUMMARY
        return ConversationStage.AWAITING_NEXT_QUESTION

    def history_without_slot(self, number: int) -> list[Message]:
        """All messages except the question and response of one slot."""
        return [
            m
            for m in self.messages
            if isinstance(m, SummaryMessage) or m.question_number != number
        ]

    # ---- guards: raise before any side effect ----

    def ensure_accepts_response(self) -> int:
        """Return the question number a response would answer."""
        if self.conversation.completed:
            raise ConversationAlreadyCompletedError()
        current = self.conversation.current_question_number
        if current == 0:
            raise NoActiveQuestionError()
        if self.response_at(current) is not None:
            raise QuestionAlreadyAnsweredError()
        return current

    def ensure_question_regenerable(self) -> int:
        """Return the number of the unanswered question that may be replaced."""
        if self.conversation.completed:
            raise ConversationAlreadyCompletedError()
        current = self.conversation.current_question_number
        if current == 0:
            raise NoActiveQuestionError()
        if self.response_at(current) is not None:
            raise QuestionAlreadyAnsweredError()
        return current

    def ensure_summary_regenerable(self) -> None:
        if not self.conversation.completed:
            raise ConversationNotCompletedError()

    def ensure_question_retryable(self) -> int:
        """Return the number of the question whose generation failed earlier."""
        stage = self.stage
        if stage is ConversationStage.COMPLETED:
            raise ConversationAlreadyCompletedError()
        if stage is ConversationStage.EMPTY:
            return 1
        if stage is ConversationStage.AWAITING_NEXT_QUESTION:
            return self.conversation.current_question_number + 1
        raise NothingToRetryError("Conversation is not waiting for a question")

    def ensure_summary_retryable(self) -> None:
        stage = self.stage
        if stage is ConversationStage.COMPLETED:
            raise ConversationAlreadyCompletedError()
        if stage is not ConversationStage.AWAITING_SUMMARY:
            raise NothingToRetryError("Conversation is not waiting for its summary")
