"""Conversation commands: the progression engine."""

from .create_conversation import (
    CreateConversationCommand,
    CreateConversationHandler,
    CreateConversationResult,
)
from .delete_conversation import DeleteConversationCommand, DeleteConversationHandler
from .regenerate_question import RegenerateQuestionCommand, RegenerateQuestionHandler
from .regenerate_summary import RegenerateSummaryCommand, RegenerateSummaryHandler
from .retry_generation import (
    RetryQuestionCommand,
    RetryQuestionHandler,
    RetrySummaryCommand,
    RetrySummaryHandler,
)
from .submit_response import (
    SubmitResponseCommand,
    SubmitResponseHandler,
    SubmitResponseResult,
)

__all__ = [
    "CreateConversationCommand",
    "CreateConversationHandler",
    "CreateConversationResult",
    "DeleteConversationCommand",
    "DeleteConversationHandler",
    "RegenerateQuestionCommand",
    "RegenerateQuestionHandler",
    "RegenerateSummaryCommand",
    "RegenerateSummaryHandler",
    "RetryQuestionCommand",
    "RetryQuestionHandler",
    "RetrySummaryCommand",
    "RetrySummaryHandler",
    "SubmitResponseCommand",
    "SubmitResponseHandler",
    "SubmitResponseResult",
]
