"""
Conversation state conflicts - the caller acted on a stale view.
Maps to: HTTP 400 Bad Request with the reason as message.
"""


class ConversationStateError(Exception):
    """Base class for operations that do not fit the conversation's stage."""

    default_message = "Conversation is not in a valid state for this operation"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class ConversationAlreadyCompletedError(ConversationStateError):
    default_message = "Conversation already completed"


class ConversationNotCompletedError(ConversationStateError):
    default_message = "Conversation is not completed"


class NoActiveQuestionError(ConversationStateError):
    default_message = "Conversation has no active question"


class QuestionAlreadyAnsweredError(ConversationStateError):
    default_message = "Current question has already been answered"


class StaleConversationStateError(ConversationStateError):
    """A guarded write found the conversation changed since it was read."""

    default_message = "Conversation changed while the request was processed"


class NothingToRetryError(ConversationStateError):
    """The conversation is not waiting on a failed generation."""

    default_message = "Conversation has nothing to retry"
