"""
Message Entities - One class per message type.

Questions and responses carry the question number they belong to; a summary
has none. The union replaces a flat message with an optional number, so a
missing number can only mean "summary".
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional, Union

from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.message_id import MessageId


class MessageType(str, Enum):
    QUESTION = "question"
    RESPONSE = "response"
    SUMMARY = "summary"


@dataclass(frozen=True)
class _BaseMessage:
    id: MessageId
    conversation_id: ConversationId
    content: str
    created_at: datetime

    type: ClassVar[MessageType]

    def __post_init__(self):
        if not self.content:
            raise ValueError(f"{self.type.value} message cannot be empty")


@dataclass(frozen=True)
class _NumberedMessage(_BaseMessage):
    question_number: int

    def __post_init__(self):
        super().__post_init__()
        if not 1 <= self.question_number <= 10:
            raise ValueError(f"Invalid question number: {self.question_number}")


@dataclass(frozen=True)
class QuestionMessage(_NumberedMessage):
    type: ClassVar[MessageType] = MessageType.QUESTION


@dataclass(frozen=True)
class ResponseMessage(_NumberedMessage):
    type: ClassVar[MessageType] = MessageType.RESPONSE


@dataclass(frozen=True)
class SummaryMessage(_BaseMessage):
    type: ClassVar[MessageType] = MessageType.SUMMARY


Message = Union[QuestionMessage, ResponseMessage, SummaryMessage]


def question_number_of(message: Message) -> Optional[int]:
    """Question number for questions/responses, None for summaries."""
    if isinstance(message, SummaryMessage):
        return None
    return message.question_number


def build_message(
    message_type: MessageType,
    id: MessageId,
    conversation_id: ConversationId,
    content: str,
    created_at: datetime,
    question_number: Optional[int] = None,
) -> Message:
    """Construct the right variant from flat (stored) fields."""
    if message_type is MessageType.SUMMARY:
        return SummaryMessage(
            id=id, conversation_id=conversation_id, content=content, created_at=created_at
        )
    if question_number is None:
        raise ValueError(f"{message_type.value} message requires a question number")
    cls = QuestionMessage if message_type is MessageType.QUESTION else ResponseMessage
    return cls(
        id=id,
        conversation_id=conversation_id,
        content=content,
        created_at=created_at,
        question_number=question_number,
    )
