"""
Retry Commands - resume a conversation whose last generation failed.

A failed generation leaves one of these stages behind:
    EMPTY                   question 1 was never stored
    AWAITING_NEXT_QUESTION  question q is answered, q+1 was never stored
    AWAITING_SUMMARY        question 10 is answered, no summary yet

Retrying runs the step that failed, with the same atomic writes as the
original path. Only the owner may retry; no extra permission is needed.
"""

from dataclasses import dataclass

from tenq.application.common.interfaces import Command, CommandHandler
from tenq.application.commands.conversations.progression import (
    advance_to_question,
    complete_conversation,
)
from tenq.domain.entities.conversation import ConversationLimits
from tenq.domain.entities.message import QuestionMessage, SummaryMessage
from tenq.domain.exceptions import EntityNotFoundError
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.ports.text_generator import TextGenerator
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class RetryQuestionCommand(Command[QuestionMessage]):
    user_id: UserId
    conversation_id: ConversationId


@dataclass(frozen=True)
class RetrySummaryCommand(Command[SummaryMessage]):
    user_id: UserId
    conversation_id: ConversationId


class RetryQuestionHandler(CommandHandler[QuestionMessage]):
    def __init__(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits = ConversationLimits(),
    ):
        self._store = store
        self._generator = generator
        self._limits = limits

    async def execute(self, command: RetryQuestionCommand) -> QuestionMessage:
        detail = await self._store.get_conversation(
            command.user_id, command.conversation_id
        )
        if detail is None:
            raise EntityNotFoundError()

        number = detail.ensure_question_retryable()
        return await advance_to_question(
            self._store,
            self._generator,
            self._limits,
            command.conversation_id,
            history=detail.messages,
            question_number=number,
            operation="retry_question",
        )


class RetrySummaryHandler(CommandHandler[SummaryMessage]):
    def __init__(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits = ConversationLimits(),
    ):
        self._store = store
        self._generator = generator
        self._limits = limits

    async def execute(self, command: RetrySummaryCommand) -> SummaryMessage:
        detail = await self._store.get_conversation(
            command.user_id, command.conversation_id
        )
        if detail is None:
            raise EntityNotFoundError()

        detail.ensure_summary_retryable()
        return await complete_conversation(
            self._store,
            self._generator,
            self._limits,
            command.conversation_id,
            operation="retry_summary",
        )
