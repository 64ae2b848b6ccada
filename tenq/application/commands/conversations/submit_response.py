"""
Submit Response Command.

Checks run in a fixed order and raise before any write:
    not found → invalid text → completed → no active question → already answered

Then the response is recorded, and the conversation either advances to the
next question or, after question 10, is summarized and completed.
"""

from dataclasses import dataclass
from typing import Optional

from tenq.application.common.interfaces import Command, CommandHandler
from tenq.application.commands.conversations.progression import (
    advance_to_question,
    complete_conversation,
    run_detached,
)
from tenq.domain.entities.conversation import (
    TOTAL_QUESTIONS,
    ConversationLimits,
    validate_response,
)
from tenq.domain.entities.message import QuestionMessage, ResponseMessage
from tenq.domain.exceptions import (
    EntityNotFoundError,
    QuestionAlreadyAnsweredError,
    StaleConversationStateError,
)
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.ports.text_generator import TextGenerator
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.user_id import UserId
from tenq.observability.metrics import ConversationEvent, increment_conversation_event


@dataclass(frozen=True)
class SubmitResponseResult:
    saved_response: ResponseMessage
    next_question: Optional[QuestionMessage] = None
    is_complete: bool = False
    summary: Optional[str] = None


@dataclass(frozen=True)
class SubmitResponseCommand(Command[SubmitResponseResult]):
    user_id: UserId
    conversation_id: ConversationId
    response: str


class SubmitResponseHandler(CommandHandler[SubmitResponseResult]):
    def __init__(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits = ConversationLimits(),
    ):
        self._store = store
        self._generator = generator
        self._limits = limits

    async def execute(self, command: SubmitResponseCommand) -> SubmitResponseResult:
        detail = await self._store.get_conversation(
            command.user_id, command.conversation_id
        )
        if detail is None:
            raise EntityNotFoundError()

        text = validate_response(command.response, self._limits.max_response_length)
        number = detail.ensure_accepts_response()

        try:
            saved = await self._store.record_response(
                command.conversation_id, number, text
            )
        except StaleConversationStateError as e:
            # Another request answered or advanced this question first
            raise QuestionAlreadyAnsweredError() from e
        increment_conversation_event(ConversationEvent.RESPONSE_RECORDED)

        if number == TOTAL_QUESTIONS:
            summary = await complete_conversation(
                self._store,
                self._generator,
                self._limits,
                command.conversation_id,
                operation="submit_response",
            )
            return SubmitResponseResult(
                saved_response=saved, is_complete=True, summary=summary.content
            )

        next_question = await run_detached(
            self._advance(command.conversation_id, number + 1),
            "submit_response",
            command.conversation_id,
        )
        return SubmitResponseResult(saved_response=saved, next_question=next_question)

    async def _advance(
        self, conversation_id: ConversationId, question_number: int
    ) -> QuestionMessage:
        history = await self._store.get_messages(conversation_id)
        return await advance_to_question(
            self._store,
            self._generator,
            self._limits,
            conversation_id,
            history=history,
            question_number=question_number,
            operation="submit_response",
        )
