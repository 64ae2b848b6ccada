"""
DTOs - Data Transfer Objects

DTOs for transferring data between layers:
- conversation.py → ConversationDTO, MessageDTO, response envelopes

Note: These are different from domain entities.
DTOs are for API input/output, entities are for business logic.
"""

from tenq.application.dto.conversation import (
    ConversationDTO,
    ConversationDetailDTO,
    CreateConversationResponse,
    MessageDTO,
    QuestionResponse,
    RetrySummaryResponse,
    SubmitResponseResponse,
    SummaryResponse,
)

__all__ = [
    "ConversationDTO",
    "ConversationDetailDTO",
    "CreateConversationResponse",
    "MessageDTO",
    "QuestionResponse",
    "RetrySummaryResponse",
    "SubmitResponseResponse",
    "SummaryResponse",
]
