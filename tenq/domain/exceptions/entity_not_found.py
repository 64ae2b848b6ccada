"""
EntityNotFoundError - Raised when a requested entity does not exist
or is owned by another user (the two cases are indistinguishable).
Maps to: HTTP 404 Not Found
"""


class EntityNotFoundError(Exception):
    """Exception raised when a requested entity is not found."""

    def __init__(self, message: str = "Conversation not found"):
        super().__init__(message)
