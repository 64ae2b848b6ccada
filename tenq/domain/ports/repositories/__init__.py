"""
REPOSITORY PORTS - Data persistence interfaces

Each repository port:
- Is an abstract base class (ABC)
- Defines methods the domain needs
- Does NOT specify implementation

Infrastructure layer provides implementations.
"""

from tenq.domain.ports.repositories.conversation_store import ConversationStore

__all__ = ["ConversationStore"]
