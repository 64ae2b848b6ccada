"""
ENTITIES - Business objects with identity

Each entity:
- Has a unique identifier
- Has behavior (methods)
- Pure Python dataclasses (no ORM, no Pydantic)
"""

from tenq.domain.entities.command import Command
from tenq.domain.entities.conversation import (
    Conversation,
    ConversationLimits,
    ConversationStage,
    ConversationWithMessages,
    TOTAL_QUESTIONS,
    validate_response,
    validate_title,
)
from tenq.domain.entities.message import (
    Message,
    MessageType,
    QuestionMessage,
    ResponseMessage,
    SummaryMessage,
    build_message,
    question_number_of,
)

__all__ = [
    "Command",
    "Conversation",
    "ConversationLimits",
    "ConversationStage",
    "ConversationWithMessages",
    "TOTAL_QUESTIONS",
    "validate_response",
    "validate_title",
    "Message",
    "MessageType",
    "QuestionMessage",
    "ResponseMessage",
    "SummaryMessage",
    "build_message",
    "question_number_of",
]
