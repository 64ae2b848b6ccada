"""Conversation DTOs for API request/response.

JSON keys are camelCase (createdAt, questionNumber, ...); Python attributes
stay snake_case. FastAPI serializes response models by alias.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from tenq.domain.entities.conversation import Conversation, ConversationWithMessages
from tenq.domain.entities.message import Message, question_number_of


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConversationDTO(CamelModel):
    id: str
    title: str
    summary: Optional[str] = None
    created_at: datetime
    completed: bool
    current_question_number: int

    @classmethod
    def from_entity(cls, conversation: Conversation) -> "ConversationDTO":
        return cls(
            id=conversation.id.value,
            title=conversation.title,
            summary=conversation.summary,
            created_at=conversation.created_at,
            completed=conversation.completed,
            current_question_number=conversation.current_question_number,
        )


class MessageDTO(CamelModel):
    """DTO for a question, response or summary returned to the frontend."""

    id: int
    conversation_id: str
    type: str
    content: str
    question_number: Optional[int] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, message: Message) -> "MessageDTO":
        return cls(
            id=message.id.value,
            conversation_id=message.conversation_id.value,
            type=message.type.value,
            content=message.content,
            question_number=question_number_of(message),
            created_at=message.created_at,
        )


class ConversationDetailDTO(ConversationDTO):
    messages: list[MessageDTO]

    @classmethod
    def from_detail(cls, detail: ConversationWithMessages) -> "ConversationDetailDTO":
        base = ConversationDTO.from_entity(detail.conversation)
        return cls(
            **base.model_dump(),
            messages=[MessageDTO.from_entity(m) for m in detail.messages],
        )


class CreateConversationResponse(CamelModel):
    conversation: ConversationDTO
    first_question: MessageDTO


class SubmitResponseResponse(CamelModel):
    saved_response: MessageDTO
    next_question: Optional[MessageDTO] = None
    is_complete: bool
    summary: Optional[str] = None


class QuestionResponse(CamelModel):
    question: MessageDTO


class SummaryResponse(CamelModel):
    summary: str


class RetrySummaryResponse(CamelModel):
    summary: str
    is_complete: bool = True
