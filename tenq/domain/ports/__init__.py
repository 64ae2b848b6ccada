"""
PORTS - Interfaces the domain needs from the outside world.
"""

from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.ports.text_generator import TextGenerator

__all__ = ["ConversationStore", "TextGenerator"]
