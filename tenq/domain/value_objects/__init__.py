"""
VALUE OBJECTS - Immutable domain types

Each value object:
- Has no identity (compared by value, not by ID)
- Is immutable (frozen dataclass)
- Validates itself on creation
"""

from tenq.domain.value_objects.user_id import UserId
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.message_id import MessageId

__all__ = [
    "UserId",
    "ConversationId",
    "MessageId",
]
