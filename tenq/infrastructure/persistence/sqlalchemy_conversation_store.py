"""
SQLAlchemy Conversation Store Implementation.

- Implements the ConversationStore port from the domain layer
- One session per operation; composites run inside `session.begin()` so any
  failure rolls the whole operation back
- Progress changes are conditional UPDATEs (compare-and-set on the expected
  question number); a guard that matches no row means another request got
  there first
- Maps between ORM records and domain entities
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenq.domain.entities.conversation import (
    TOTAL_QUESTIONS,
    Conversation,
    ConversationWithMessages,
)
from tenq.domain.entities.message import (
    Message,
    MessageType,
    QuestionMessage,
    ResponseMessage,
    SummaryMessage,
    build_message,
)
from tenq.domain.exceptions import (
    QuestionAlreadyAnsweredError,
    StaleConversationStateError,
)
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.domain.value_objects.message_id import MessageId
from tenq.domain.value_objects.user_id import UserId
from tenq.infrastructure.persistence.models import (
    ConversationRecord,
    MessageRecord,
    utcnow,
)

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    """SQLite hands datetimes back naive; they were written as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SqlAlchemyConversationStore(ConversationStore):
    _session_factory: async_sessionmaker[AsyncSession]

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ---- mapping ----

    def _to_conversation(self, record: ConversationRecord) -> Conversation:
        return Conversation(
            id=ConversationId(record.id),
            user_id=UserId(record.user_id),
            title=record.title,
            summary=record.summary,
            created_at=_aware(record.created_at),
            completed=record.completed,
            current_question_number=record.current_question_number,
        )

    def _to_message(self, record: MessageRecord) -> Message:
        return build_message(
            message_type=MessageType(record.type),
            id=MessageId(record.id),
            conversation_id=ConversationId(record.conversation_id),
            content=record.content,
            created_at=_aware(record.created_at),
            question_number=record.question_number,
        )

    @staticmethod
    def _ordered_messages(conversation_id: ConversationId):
        return (
            select(MessageRecord)
            .where(MessageRecord.conversation_id == conversation_id.value)
            .order_by(MessageRecord.created_at, MessageRecord.id)
        )

    async def _insert_message(
        self,
        session: AsyncSession,
        conversation_id: ConversationId,
        message_type: MessageType,
        content: str,
        question_number: Optional[int] = None,
    ) -> MessageRecord:
        record = MessageRecord(
            conversation_id=conversation_id.value,
            type=message_type.value,
            content=content,
            question_number=question_number,
            created_at=utcnow(),
        )
        session.add(record)
        await session.flush()
        return record

    # ---- conversations ----

    async def create_conversation(self, user_id: UserId, title: str) -> Conversation:
        conversation = Conversation.create(user_id, title)
        async with self._session_factory() as session, session.begin():
            session.add(
                ConversationRecord(
                    id=conversation.id.value,
                    user_id=user_id.value,
                    title=conversation.title,
                    summary=None,
                    completed=False,
                    current_question_number=0,
                    created_at=conversation.created_at,
                )
            )
        return conversation

    async def get_conversation(
        self, user_id: UserId, conversation_id: ConversationId
    ) -> Optional[ConversationWithMessages]:
        async with self._session_factory() as session:
            record = await session.scalar(
                select(ConversationRecord).where(
                    ConversationRecord.id == conversation_id.value,
                    ConversationRecord.user_id == user_id.value,
                )
            )
            if record is None:
                return None
            messages = await session.scalars(self._ordered_messages(conversation_id))
            return ConversationWithMessages(
                conversation=self._to_conversation(record),
                messages=[self._to_message(m) for m in messages],
            )

    async def list_conversations(
        self, user_id: UserId, limit: Optional[int] = None
    ) -> list[Conversation]:
        """Newest first; every conversation unless `limit` is given."""
        statement = (
            select(ConversationRecord)
            .where(ConversationRecord.user_id == user_id.value)
            .order_by(ConversationRecord.created_at.desc())
        )
        if limit is not None:
            statement = statement.limit(limit)
        async with self._session_factory() as session:
            records = await session.scalars(statement)
            return [self._to_conversation(r) for r in records]

    async def delete_conversation(
        self, user_id: UserId, conversation_id: ConversationId
    ) -> bool:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(ConversationRecord).where(
                    ConversationRecord.id == conversation_id.value,
                    ConversationRecord.user_id == user_id.value,
                )
            )
            return result.rowcount > 0

    # ---- single-step operations ----

    async def save_message(
        self,
        conversation_id: ConversationId,
        message_type: MessageType,
        content: str,
        question_number: Optional[int] = None,
    ) -> Message:
        async with self._session_factory() as session, session.begin():
            record = await self._insert_message(
                session, conversation_id, message_type, content, question_number
            )
            return self._to_message(record)

    async def update_progress(
        self,
        conversation_id: ConversationId,
        question_number: int,
        completed: bool = False,
    ) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(
                update(ConversationRecord)
                .where(ConversationRecord.id == conversation_id.value)
                .values(current_question_number=question_number, completed=completed)
            )

    async def update_summary(self, conversation_id: ConversationId, summary: str) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(
                update(ConversationRecord)
                .where(ConversationRecord.id == conversation_id.value)
                .values(summary=summary, completed=True)
            )

    async def get_messages(self, conversation_id: ConversationId) -> list[Message]:
        async with self._session_factory() as session:
            records = await session.scalars(self._ordered_messages(conversation_id))
            return [self._to_message(r) for r in records]

    async def delete_messages_by_type(
        self, conversation_id: ConversationId, message_type: MessageType
    ) -> int:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(MessageRecord).where(
                    MessageRecord.conversation_id == conversation_id.value,
                    MessageRecord.type == message_type.value,
                )
            )
            return result.rowcount

    async def delete_question_message(
        self, conversation_id: ConversationId, question_number: int
    ) -> int:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(MessageRecord).where(
                    MessageRecord.conversation_id == conversation_id.value,
                    MessageRecord.type == MessageType.QUESTION.value,
                    MessageRecord.question_number == question_number,
                )
            )
            return result.rowcount

    # ---- atomic composites ----

    @staticmethod
    def _slot_filled(
        conversation_id: ConversationId, message_type: MessageType, question_number: int
    ):
        return (
            select(MessageRecord.id)
            .where(
                MessageRecord.conversation_id == conversation_id.value,
                MessageRecord.type == message_type.value,
                MessageRecord.question_number == question_number,
            )
            .exists()
        )

    async def append_question(
        self, conversation_id: ConversationId, question_number: int, content: str
    ) -> QuestionMessage:
        previous = question_number - 1
        conditions = [
            ConversationRecord.id == conversation_id.value,
            ConversationRecord.current_question_number == previous,
            ConversationRecord.completed.is_(False),
        ]
        if previous > 0:
            # The previous question must have been answered
            conditions.append(
                self._slot_filled(conversation_id, MessageType.RESPONSE, previous)
            )

        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    update(ConversationRecord)
                    .where(*conditions)
                    .values(current_question_number=question_number)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise StaleConversationStateError(
                        f"Cannot append question {question_number}: progress moved"
                    )
                record = await self._insert_message(
                    session,
                    conversation_id,
                    MessageType.QUESTION,
                    content,
                    question_number,
                )
                return self._to_message(record)
        except IntegrityError as e:
            raise StaleConversationStateError(
                f"Question {question_number} already exists"
            ) from e

    async def record_response(
        self, conversation_id: ConversationId, question_number: int, content: str
    ) -> ResponseMessage:
        try:
            async with self._session_factory() as session, session.begin():
                open_at_number = await session.scalar(
                    select(ConversationRecord.id).where(
                        ConversationRecord.id == conversation_id.value,
                        ConversationRecord.current_question_number == question_number,
                        ConversationRecord.completed.is_(False),
                    )
                )
                if open_at_number is None:
                    raise StaleConversationStateError(
                        f"Question {question_number} is no longer open"
                    )
                record = await self._insert_message(
                    session,
                    conversation_id,
                    MessageType.RESPONSE,
                    content,
                    question_number,
                )
                return self._to_message(record)
        except IntegrityError as e:
            raise QuestionAlreadyAnsweredError() from e

    async def replace_question(
        self, conversation_id: ConversationId, question_number: int, content: str
    ) -> QuestionMessage:
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    update(ConversationRecord)
                    .where(
                        ConversationRecord.id == conversation_id.value,
                        ConversationRecord.current_question_number == question_number,
                        ConversationRecord.completed.is_(False),
                        ~self._slot_filled(
                            conversation_id, MessageType.RESPONSE, question_number
                        ),
                    )
                    .values(current_question_number=question_number)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise StaleConversationStateError(
                        f"Question {question_number} can no longer be replaced"
                    )
                await session.execute(
                    delete(MessageRecord).where(
                        MessageRecord.conversation_id == conversation_id.value,
                        MessageRecord.type == MessageType.QUESTION.value,
                        MessageRecord.question_number == question_number,
                    )
                )
                record = await self._insert_message(
                    session,
                    conversation_id,
                    MessageType.QUESTION,
                    content,
                    question_number,
                )
                return self._to_message(record)
        except IntegrityError as e:
            raise StaleConversationStateError(
                f"Question {question_number} changed concurrently"
            ) from e

    async def complete_with_summary(
        self, conversation_id: ConversationId, content: str
    ) -> SummaryMessage:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(ConversationRecord)
                .where(
                    ConversationRecord.id == conversation_id.value,
                    ConversationRecord.current_question_number == TOTAL_QUESTIONS,
                    ConversationRecord.completed.is_(False),
                    self._slot_filled(
                        conversation_id, MessageType.RESPONSE, TOTAL_QUESTIONS
                    ),
                )
                .values(summary=content, completed=True)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise StaleConversationStateError(
                    "Conversation is not awaiting its summary"
                )
            record = await self._insert_message(
                session, conversation_id, MessageType.SUMMARY, content
            )
            return self._to_message(record)

    async def replace_summary(
        self, conversation_id: ConversationId, content: str
    ) -> SummaryMessage:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(ConversationRecord)
                .where(
                    ConversationRecord.id == conversation_id.value,
                    ConversationRecord.completed.is_(True),
                )
                .values(summary=content)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise StaleConversationStateError("Conversation is not completed")
            await session.execute(
                delete(MessageRecord).where(
                    MessageRecord.conversation_id == conversation_id.value,
                    MessageRecord.type == MessageType.SUMMARY.value,
                )
            )
            record = await self._insert_message(
                session, conversation_id, MessageType.SUMMARY, content
            )
            return self._to_message(record)

    async def health_check(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))
