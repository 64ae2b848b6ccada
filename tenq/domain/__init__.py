"""
DOMAIN LAYER - The heart of the interview flow

This layer contains:
- Entities: Conversation, the message union, Command
- Value Objects: Immutable types (UserId, ConversationId, MessageId)
- Ports: Interfaces that infrastructure implements (store, text generator)
- Exceptions: Domain-specific errors

RULES:
1. NO framework imports (no FastAPI, SQLAlchemy, Pydantic, etc.)
2. NO I/O operations (no database, no HTTP, no file system)
3. Only depends on Python stdlib
4. This is where the progression rules live
"""
