"""Conversation-related queries."""

from tenq.application.queries.conversations.list_conversations import (
    ListConversationsQuery,
    ListConversationsHandler,
)
from tenq.application.queries.conversations.get_conversation import (
    GetConversationQuery,
    GetConversationHandler,
)
from tenq.application.queries.conversations.export_conversation import (
    ExportConversationQuery,
    ExportConversationHandler,
    ExportConversationResult,
)

__all__ = [
    "ListConversationsQuery",
    "ListConversationsHandler",
    "GetConversationQuery",
    "GetConversationHandler",
    "ExportConversationQuery",
    "ExportConversationHandler",
    "ExportConversationResult",
]
