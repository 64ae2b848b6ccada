"""
GetConversation Query - conversation metadata plus its ordered messages.

A conversation owned by another user is reported exactly like a missing one.
"""

from dataclasses import dataclass

from tenq.application.common.interfaces import Query, QueryHandler
from tenq.domain.entities.conversation import ConversationWithMessages
from tenq.domain.exceptions import EntityNotFoundError
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class GetConversationQuery(Query[ConversationWithMessages]):
    user_id: UserId
    conversation_id: ConversationId


class GetConversationHandler(QueryHandler[ConversationWithMessages]):
    def __init__(self, store: ConversationStore):
        self._store = store

    async def execute(self, query: GetConversationQuery) -> ConversationWithMessages:
        detail = await self._store.get_conversation(query.user_id, query.conversation_id)
        if detail is None:
            raise EntityNotFoundError()
        return detail
