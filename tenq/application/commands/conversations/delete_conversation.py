"""Delete Conversation Command."""

import logging
from dataclasses import dataclass

from tenq.application.common.interfaces import Command, CommandHandler
from tenq.domain.exceptions import EntityNotFoundError
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.user_id import UserId
from tenq.observability.metrics import ConversationEvent, increment_conversation_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteConversationCommand(Command[None]):
    user_id: UserId
    conversation_id: ConversationId


class DeleteConversationHandler(CommandHandler[None]):
    def __init__(self, store: ConversationStore):
        self._store = store

    async def execute(self, command: DeleteConversationCommand) -> None:
        # Ownership is part of the delete's WHERE clause: someone else's
        # conversation reads as missing
        deleted = await self._store.delete_conversation(
            command.user_id, command.conversation_id
        )
        if not deleted:
            raise EntityNotFoundError()
        increment_conversation_event(ConversationEvent.DELETED)
        logger.info("[Conversation] Deleted conversation=%s", command.conversation_id.value)
