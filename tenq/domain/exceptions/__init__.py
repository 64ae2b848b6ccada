"""
DOMAIN EXCEPTIONS - Business rule violations

These exceptions are raised by domain and application logic and caught by the
presentation layer, which maps them to HTTP status codes.
"""

from tenq.domain.exceptions.entity_not_found import EntityNotFoundError
from tenq.domain.exceptions.access_denied import AccessDeniedError
from tenq.domain.exceptions.validation_error import DomainValidationError
from tenq.domain.exceptions.conversation_state import (
    ConversationStateError,
    ConversationAlreadyCompletedError,
    ConversationNotCompletedError,
    NoActiveQuestionError,
    QuestionAlreadyAnsweredError,
    StaleConversationStateError,
    NothingToRetryError,
)
from tenq.domain.exceptions.generation_error import (
    GenerationError,
    CommandNotFoundError,
    GenerationFailedError,
    GenerationTimeoutError,
    CircuitOpenError,
)

__all__ = [
    "EntityNotFoundError",
    "AccessDeniedError",
    "DomainValidationError",
    "ConversationStateError",
    "ConversationAlreadyCompletedError",
    "ConversationNotCompletedError",
    "NoActiveQuestionError",
    "QuestionAlreadyAnsweredError",
    "StaleConversationStateError",
    "NothingToRetryError",
    "GenerationError",
    "CommandNotFoundError",
    "GenerationFailedError",
    "GenerationTimeoutError",
    "CircuitOpenError",
]
