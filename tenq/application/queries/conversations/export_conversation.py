"""Export Conversation Query - markdown rendering for download."""

from dataclasses import dataclass

from tenq.application.common.interfaces import Query, QueryHandler
from tenq.domain.exceptions import EntityNotFoundError
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.user_id import UserId
from tenq.services.export_service import export_filename, export_to_markdown


@dataclass
class ExportConversationResult:
    filename: str
    markdown: str


@dataclass(frozen=True)
class ExportConversationQuery(Query[ExportConversationResult]):
    user_id: UserId
    conversation_id: ConversationId


class ExportConversationHandler(QueryHandler[ExportConversationResult]):
    def __init__(self, store: ConversationStore):
        self._store = store

    async def execute(self, query: ExportConversationQuery) -> ExportConversationResult:
        detail = await self._store.get_conversation(query.user_id, query.conversation_id)
        if detail is None:
            raise EntityNotFoundError()
        return ExportConversationResult(
            filename=export_filename(detail.conversation.title),
            markdown=export_to_markdown(detail),
        )
