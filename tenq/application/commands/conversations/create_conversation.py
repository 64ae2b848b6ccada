"""
Create Conversation Command.

Creates the conversation at question 0, then generates and stores question 1.
If question 1 cannot be produced the conversation stays at 0 with no
messages; RetryQuestionHandler resumes it.
"""

from dataclasses import dataclass, replace

from tenq.application.common.interfaces import Command, CommandHandler
from tenq.application.commands.conversations.progression import advance_to_question
from tenq.domain.entities.conversation import (
    Conversation,
    ConversationLimits,
    validate_title,
)
from tenq.domain.entities.message import QuestionMessage
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.ports.text_generator import TextGenerator
from tenq.domain.value_objects.user_id import UserId
from tenq.observability.metrics import ConversationEvent, increment_conversation_event


@dataclass(frozen=True)
class CreateConversationResult:
    conversation: Conversation
    first_question: QuestionMessage


@dataclass(frozen=True)
class CreateConversationCommand(Command[CreateConversationResult]):
    user_id: UserId
    title: str


class CreateConversationHandler(CommandHandler[CreateConversationResult]):
    _store: ConversationStore
    _generator: TextGenerator
    _limits: ConversationLimits

    def __init__(
        self,
        store: ConversationStore,
        generator: TextGenerator,
        limits: ConversationLimits = ConversationLimits(),
    ):
        self._store = store
        self._generator = generator
        self._limits = limits

    async def execute(self, command: CreateConversationCommand) -> CreateConversationResult:
        title = validate_title(command.title, self._limits.max_title_length)
        conversation = await self._store.create_conversation(command.user_id, title)
        increment_conversation_event(ConversationEvent.CREATED)

        first_question = await advance_to_question(
            self._store,
            self._generator,
            self._limits,
            conversation.id,
            history=[],
            question_number=1,
            operation="create_conversation",
        )
        return CreateConversationResult(
            conversation=replace(conversation, current_question_number=1),
            first_question=first_question,
        )
