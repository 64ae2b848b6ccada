"""
Generation errors - the text-generation dependency could not produce text.
Maps to: HTTP 500 with a generic message; the cause is only logged.
"""


class GenerationError(Exception):
    """Base class for text generation failures."""


class CommandNotFoundError(GenerationError):
    def __init__(self, question_number: int):
        super().__init__(f"No command found for question number {question_number}")
        self.question_number = question_number


class GenerationFailedError(GenerationError):
    """Provider answered but returned no usable content."""


class GenerationTimeoutError(GenerationError):
    """Provider did not answer within the configured timeout."""


class CircuitOpenError(GenerationError):
    """LLM provider is failing - fail fast without a network call."""
