"""
Conversation Store Port - Interface for conversation and message persistence.
Implementation: tenq/infrastructure/persistence/sqlalchemy_conversation_store.py

Composite operations run in one transaction each. A composite whose guard
fails (progress moved, slot already filled) raises
StaleConversationStateError and changes nothing.
"""

from abc import ABC, abstractmethod
from typing import Optional

from tenq.domain.entities.conversation import Conversation, ConversationWithMessages
from tenq.domain.entities.message import (
    Message,
    MessageType,
    QuestionMessage,
    ResponseMessage,
    SummaryMessage,
)
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.user_id import UserId


class ConversationStore(ABC):
    # ---- conversations ----

    @abstractmethod
    async def create_conversation(self, user_id: UserId, title: str) -> Conversation: ...

    @abstractmethod
    async def get_conversation(
        self, user_id: UserId, conversation_id: ConversationId
    ) -> Optional[ConversationWithMessages]: ...

    @abstractmethod
    async def list_conversations(
        self, user_id: UserId, limit: Optional[int] = None
    ) -> list[Conversation]: ...

    @abstractmethod
    async def delete_conversation(
        self, user_id: UserId, conversation_id: ConversationId
    ) -> bool: ...

    # ---- single-step operations ----

    @abstractmethod
    async def save_message(
        self,
        conversation_id: ConversationId,
        message_type: MessageType,
        content: str,
        question_number: Optional[int] = None,
    ) -> Message: ...

    @abstractmethod
    async def update_progress(
        self,
        conversation_id: ConversationId,
        question_number: int,
        completed: bool = False,
    ) -> None: ...

    @abstractmethod
    async def update_summary(
        self, conversation_id: ConversationId, summary: str
    ) -> None: ...

    @abstractmethod
    async def get_messages(self, conversation_id: ConversationId) -> list[Message]: ...

    @abstractmethod
    async def delete_messages_by_type(
        self, conversation_id: ConversationId, message_type: MessageType
    ) -> int: ...

    @abstractmethod
    async def delete_question_message(
        self, conversation_id: ConversationId, question_number: int
    ) -> int: ...

    # ---- atomic composites ----

    @abstractmethod
    async def append_question(
        self, conversation_id: ConversationId, question_number: int, content: str
    ) -> QuestionMessage:
        """Insert question n and advance progress from n-1 to n."""

    @abstractmethod
    async def record_response(
        self, conversation_id: ConversationId, question_number: int, content: str
    ) -> ResponseMessage:
        """Insert the response to question n if it is open and unanswered."""

    @abstractmethod
    async def replace_question(
        self, conversation_id: ConversationId, question_number: int, content: str
    ) -> QuestionMessage:
        """Swap the unanswered current question for a new one."""

    @abstractmethod
    async def complete_with_summary(
        self, conversation_id: ConversationId, content: str
    ) -> SummaryMessage:
        """Insert the summary message and mark the conversation completed."""

    @abstractmethod
    async def replace_summary(
        self, conversation_id: ConversationId, content: str
    ) -> SummaryMessage:
        """Drop every summary message of a completed conversation and store a new one."""

    @abstractmethod
    async def health_check(self) -> None:
        """Raise if the backing store cannot serve a trivial query."""
