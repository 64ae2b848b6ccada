"""
Persistence Layer - Database implementations.

Contains the SQLAlchemy (async) implementation of the ConversationStore port.
"""

from tenq.infrastructure.persistence.database import (
    create_engine,
    create_session_factory,
    init_schema,
)
from tenq.infrastructure.persistence.sqlalchemy_conversation_store import (
    SqlAlchemyConversationStore,
)

__all__ = [
    "SqlAlchemyConversationStore",
    "create_engine",
    "create_session_factory",
    "init_schema",
]
