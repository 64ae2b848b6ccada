"""
Base interfaces for CQRS pattern.

Commands change conversation state; queries only read it. Handlers receive
their collaborators (store, text generator) through __init__ from the DI
container and expose a single async `execute`.

Usage:
    @dataclass(frozen=True)
    class DeleteConversationCommand(Command[None]):
        user_id: UserId
        conversation_id: ConversationId

    class DeleteConversationHandler(CommandHandler[None]):
        def __init__(self, store: ConversationStore):
            self._store = store

        async def execute(self, command: DeleteConversationCommand) -> None:
            if not await self._store.delete_conversation(...):
                raise EntityNotFoundError()
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class Command(ABC, Generic[T]):
    """Input of a write operation producing T."""


class CommandHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, command: Command[T]) -> T: ...


class Query(ABC, Generic[T]):
    """Input of a read operation producing T."""


class QueryHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, query: Query[T]) -> T: ...
