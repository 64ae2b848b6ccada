"""
AccessDeniedError - Raised when user lacks permission for an operation.
Maps to: HTTP 403 Forbidden
"""


class AccessDeniedError(Exception):
    """Raised when user lacks permission for an operation"""

    def __init__(self, message: str = "Permission required"):
        super().__init__(message)
