"""
Regenerate Question Command.

Replaces the current, unanswered question. The history passed to the
generator leaves out the slot being replaced.
"""

import logging
from dataclasses import dataclass

from tenq.application.common.interfaces import Command, CommandHandler
from tenq.application.commands.conversations.progression import (
    generate_question_text,
    run_detached,
)
from tenq.domain.entities.conversation import ConversationLimits
from tenq.domain.entities.message import Message, QuestionMessage
from tenq.domain.exceptions import EntityNotFoundError
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.ports.text_generator import TextGenerator
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.user_id import UserId
from tenq.observability.metrics import ConversationEvent, increment_conversation_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegenerateQuestionCommand(Command[QuestionMessage]):
    user_id: UserId
    conversation_id: ConversationId


class RegenerateQuestionHandler(CommandHandler[QuestionMessage]):
    def __init__(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits = ConversationLimits(),
    ):
        self._store = store
        self._generator = generator
        self._limits = limits

    async def execute(self, command: RegenerateQuestionCommand) -> QuestionMessage:
        detail = await self._store.get_conversation(
            command.user_id, command.conversation_id
        )
        if detail is None:
            raise EntityNotFoundError()

        number = detail.ensure_question_regenerable()
        return await run_detached(
            self._regenerate(
                command.conversation_id, detail.history_without_slot(number), number
            ),
            "regenerate_question",
            command.conversation_id,
        )

    async def _regenerate(
        self, conversation_id: ConversationId, history: list[Message], number: int
    ) -> QuestionMessage:
        content = await generate_question_text(
            self._generator,
            self._limits,
            conversation_id,
            history,
            number,
            operation="regenerate_question",
        )
        question = await self._store.replace_question(conversation_id, number, content)
        increment_conversation_event(ConversationEvent.QUESTION_REGENERATED)
        logger.info(
            "[Conversation] Question %d regenerated for conversation=%s",
            number,
            conversation_id.value,
        )
        return question
