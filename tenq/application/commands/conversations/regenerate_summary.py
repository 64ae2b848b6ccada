"""Regenerate Summary Command."""

import logging
from dataclasses import dataclass

from tenq.application.common.interfaces import Command, CommandHandler
from tenq.application.commands.conversations.progression import (
    generate_summary_text,
    run_detached,
)
from tenq.domain.entities.conversation import ConversationLimits
from tenq.domain.entities.message import Message, SummaryMessage
from tenq.domain.exceptions import EntityNotFoundError
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.ports.text_generator import TextGenerator
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.user_id import UserId
from tenq.observability.metrics import ConversationEvent, increment_conversation_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegenerateSummaryCommand(Command[SummaryMessage]):
    user_id: UserId
    conversation_id: ConversationId


class RegenerateSummaryHandler(CommandHandler[SummaryMessage]):
    def __init__(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits = ConversationLimits(),
    ):
        self._store = store
        self._generator = generator
        self._limits = limits

    async def execute(self, command: RegenerateSummaryCommand) -> SummaryMessage:
        detail = await self._store.get_conversation(
            command.user_id, command.conversation_id
        )
        if detail is None:
            raise EntityNotFoundError()
        detail.ensure_summary_regenerable()

        history = [m for m in detail.messages if not isinstance(m, SummaryMessage)]
        return await run_detached(
            self._regenerate(command.conversation_id, history),
            "regenerate_summary",
            command.conversation_id,
        )

    async def _regenerate(
        self, conversation_id: ConversationId, history: list[Message]
    ) -> SummaryMessage:
        content = await generate_summary_text(
            self._generator,
            self._limits,
            conversation_id,
            history,
            operation="regenerate_summary",
        )
        summary = await self._store.replace_summary(conversation_id, content)
        increment_conversation_event(ConversationEvent.SUMMARY_REGENERATED)
        logger.info(
            "[Conversation] Summary regenerated for conversation=%s",
            conversation_id.value,
        )
        return summary
