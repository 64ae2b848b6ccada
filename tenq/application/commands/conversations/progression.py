"""
Shared steps of the progression handlers: generate, bound, persist.

Each generate-then-persist step runs as its own task, detached from the
request. A client that disconnects mid-request cancels only its wait; the
step still finishes and its result is stored, so the next load shows the
advanced state.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from tenq.domain.entities.conversation import ConversationLimits
from tenq.domain.entities.message import Message, QuestionMessage, SummaryMessage
from tenq.domain.exceptions import GenerationError, GenerationFailedError
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.ports.text_generator import TextGenerator
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.observability.metrics import ConversationEvent, increment_conversation_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Strong references: the event loop only keeps weak ones to running tasks
_detached_steps: set[asyncio.Task] = set()
# Steps whose caller went away; nobody else sees their outcome
_abandoned_steps: set[asyncio.Task] = set()


def log_generation_failure(
    operation: str,
    conversation_id: ConversationId,
    question_number: int | None,
    error: Exception,
) -> None:
    logger.error(
        "[Conversation] %s failed: conversation=%s question=%s error=%s: %s",
        operation,
        conversation_id.value,
        question_number if question_number is not None else "-",
        type(error).__name__,
        error,
    )


def _step_done(operation: str, conversation_id: ConversationId, task: asyncio.Task) -> None:
    _detached_steps.discard(task)
    abandoned = task in _abandoned_steps
    _abandoned_steps.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if not abandoned:
        return
    if error is None:
        logger.info(
            "[Conversation] %s finished after the client left: conversation=%s",
            operation,
            conversation_id.value,
        )
    # Generation failures are logged where they happen
    elif not isinstance(error, GenerationError):
        logger.error(
            "[Conversation] %s failed after the client left: conversation=%s error=%s: %s",
            operation,
            conversation_id.value,
            type(error).__name__,
            error,
        )


async def run_detached(
    step: Awaitable[T], operation: str, conversation_id: ConversationId
) -> T:
    """Await `step` in a task that outlives the caller's cancellation."""
    task = asyncio.ensure_future(step)
    _detached_steps.add(task)
    task.add_done_callback(
        lambda finished: _step_done(operation, conversation_id, finished)
    )
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        if not task.done():
            _abandoned_steps.add(task)
        raise


def _check_length(content: str, limit: int, kind: str) -> str:
    if len(content) > limit:
        raise GenerationFailedError(
            f"Generated {kind} is {len(content)} characters, limit is {limit}"
        )
    return content


async def generate_question_text(
    generator: TextGenerator,
    limits: ConversationLimits,
    conversation_id: ConversationId,
    history: list[Message],
    question_number: int,
    operation: str,
) -> str:
    try:
        content = await generator.generate_question(history, question_number)
        return _check_length(content, limits.max_question_length, "question")
    except GenerationError as e:
        log_generation_failure(operation, conversation_id, question_number, e)
        raise


async def generate_summary_text(
    generator: TextGenerator,
    limits: ConversationLimits,
    conversation_id: ConversationId,
    history: list[Message],
    operation: str,
) -> str:
    try:
        content = await generator.generate_summary(history)
        return _check_length(content, limits.max_summary_length, "summary")
    except GenerationError as e:
        log_generation_failure(operation, conversation_id, None, e)
        raise


async def _generate_and_append(
    store: ConversationStore,
    generator: TextGenerator,
    limits: ConversationLimits,
    conversation_id: ConversationId,
    history: list[Message],
    question_number: int,
    operation: str,
) -> QuestionMessage:
    content = await generate_question_text(
        generator, limits, conversation_id, history, question_number, operation
    )
    question = await store.append_question(conversation_id, question_number, content)
    increment_conversation_event(ConversationEvent.QUESTION_GENERATED)
    logger.info(
        "[Conversation] %s: conversation=%s now at question %d",
        operation,
        conversation_id.value,
        question_number,
    )
    return question


async def advance_to_question(
    store: ConversationStore,
    generator: TextGenerator,
    limits: ConversationLimits,
    conversation_id: ConversationId,
    history: list[Message],
    question_number: int,
    operation: str,
) -> QuestionMessage:
    """Generate question n and atomically move the conversation from n-1 to n."""
    return await run_detached(
        _generate_and_append(
            store,
            generator,
            limits,
            conversation_id,
            history,
            question_number,
            operation,
        ),
        operation,
        conversation_id,
    )


async def _summarize_and_complete(
    store: ConversationStore,
    generator: TextGenerator,
    limits: ConversationLimits,
    conversation_id: ConversationId,
    operation: str,
) -> SummaryMessage:
    history = await store.get_messages(conversation_id)
    content = await generate_summary_text(
        generator, limits, conversation_id, history, operation
    )
    summary = await store.complete_with_summary(conversation_id, content)
    increment_conversation_event(ConversationEvent.COMPLETED)
    logger.info("[Conversation] %s: conversation=%s completed", operation, conversation_id.value)
    return summary


async def complete_conversation(
    store: ConversationStore,
    generator: TextGenerator,
    limits: ConversationLimits,
    conversation_id: ConversationId,
    operation: str,
) -> SummaryMessage:
    """Summarize the full history and atomically mark the conversation completed."""
    return await run_detached(
        _summarize_and_complete(store, generator, limits, conversation_id, operation),
        operation,
        conversation_id,
    )
