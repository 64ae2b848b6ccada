"""List Conversations Query."""

from dataclasses import dataclass
from typing import Optional

from tenq.application.common.interfaces import Query, QueryHandler
from tenq.domain.entities.conversation import Conversation
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class ListConversationsQuery(Query[list[Conversation]]):
    user_id: UserId
    # None lists every conversation the caller owns
    limit: Optional[int] = None


class ListConversationsHandler(QueryHandler[list[Conversation]]):
    def __init__(self, store: ConversationStore):
        self._store = store

    async def execute(self, query: ListConversationsQuery) -> list[Conversation]:
        return await self._store.list_conversations(query.user_id, query.limit)
