"""
Conversations API Router - the ten-question flow over HTTP.

- Receives handlers via Dependency Injection (Dishka)
- Thin layer: parses input, calls a handler, maps the result to a DTO
- Domain exceptions become HTTPException here; generation failures are
  logged by the handlers and reported with a generic message

Flow:
  HTTP Request → Router → Command → Handler → Store / TextGenerator
                                 ↓
  HTTP Response ← Router ← Result ←
"""

from logging import getLogger
from typing import Optional

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel

from tenq.application.commands.conversations import (
    CreateConversationCommand,
    CreateConversationHandler,
    DeleteConversationCommand,
    DeleteConversationHandler,
    RegenerateQuestionCommand,
    RegenerateQuestionHandler,
    RegenerateSummaryCommand,
    RegenerateSummaryHandler,
    RetryQuestionCommand,
    RetryQuestionHandler,
    RetrySummaryCommand,
    RetrySummaryHandler,
    SubmitResponseCommand,
    SubmitResponseHandler,
)
from tenq.application.dto import (
    ConversationDTO,
    ConversationDetailDTO,
    CreateConversationResponse,
    MessageDTO,
    QuestionResponse,
    RetrySummaryResponse,
    SubmitResponseResponse,
    SummaryResponse,
)
from tenq.application.queries.conversations import (
    ExportConversationHandler,
    ExportConversationQuery,
    GetConversationHandler,
    GetConversationQuery,
    ListConversationsHandler,
    ListConversationsQuery,
)
from tenq.config.permissions import REGENERATE_PERMISSION
from tenq.config.settings import Config
from tenq.domain.exceptions import (
    ConversationStateError,
    DomainValidationError,
    EntityNotFoundError,
    GenerationError,
)
from tenq.domain.value_objects.conversation_id import ConversationId
from tenq.presentation.dependencies.admission import limit_concurrency, limiter
from tenq.presentation.dependencies.auth import (
    AuthUser,
    get_current_user,
    require_permission,
)

logger = getLogger(__name__)


# ==================== REQUEST MODELS ====================


class CreateConversationRequest(BaseModel):
    title: Optional[str] = None


class SubmitResponseRequest(BaseModel):
    response: Optional[str] = None


# ==================== HELPERS ====================


def _conversation_id(raw: str) -> ConversationId:
    try:
        return ConversationId(raw)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid conversation ID"
        ) from e


def _http_error(error: Exception, failure_message: str) -> HTTPException:
    """Map a domain exception raised by a handler to the HTTP error it stands for."""
    if isinstance(error, EntityNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, DomainValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=error.message
        )
    if isinstance(error, ConversationStateError):
        logger.info("Conversation state conflict: %s", error)
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    # GenerationError: already logged with context by the handler
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_message
    )


_HANDLED = (EntityNotFoundError, DomainValidationError, ConversationStateError, GenerationError)


# ==================== ROUTER ====================

router = APIRouter(prefix="/conversations", tags=["conversations"])


# ==================== ENDPOINTS ====================


@router.post(
    "",
    response_model=CreateConversationResponse,
    status_code=status.HTTP_201_CREATED,
)
@inject
async def create_conversation(
    body: CreateConversationRequest,
    handler: FromDishka[CreateConversationHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """Create a conversation and return it with its first question."""
    try:
        result = await handler.execute(
            CreateConversationCommand(user_id=current_user.user_id, title=body.title)
        )
    except _HANDLED as e:
        raise _http_error(e, "Failed to create conversation") from e

    return CreateConversationResponse(
        conversation=ConversationDTO.from_entity(result.conversation),
        first_question=MessageDTO.from_entity(result.first_question),
    )


@router.get(
    "",
    response_model=list[ConversationDTO],
    status_code=status.HTTP_200_OK,
)
@inject
async def list_conversations(
    handler: FromDishka[ListConversationsHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """List the caller's conversations, newest first."""
    conversations = await handler.execute(
        ListConversationsQuery(user_id=current_user.user_id)
    )
    return [ConversationDTO.from_entity(c) for c in conversations]


@router.get(
    "/{conversation_id}",
    response_model=ConversationDetailDTO,
    status_code=status.HTTP_200_OK,
)
@inject
async def get_conversation(
    conversation_id: str,
    handler: FromDishka[GetConversationHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """Conversation with its messages in conversation order."""
    query = GetConversationQuery(
        user_id=current_user.user_id, conversation_id=_conversation_id(conversation_id)
    )
    try:
        detail = await handler.execute(query)
    except EntityNotFoundError as e:
        raise _http_error(e, "Failed to fetch conversation") from e
    return ConversationDetailDTO.from_detail(detail)


@router.delete(
    "/{conversation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
@inject
async def delete_conversation(
    conversation_id: str,
    handler: FromDishka[DeleteConversationHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """Delete a conversation and all of its messages."""
    command = DeleteConversationCommand(
        user_id=current_user.user_id, conversation_id=_conversation_id(conversation_id)
    )
    try:
        await handler.execute(command)
    except EntityNotFoundError as e:
        raise _http_error(e, "Failed to delete conversation") from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{conversation_id}/response",
    response_model=SubmitResponseResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(limit_concurrency)],
)
@limiter.limit(Config.response_rate_limit)
@inject
async def submit_response(
    request: Request,
    conversation_id: str,
    body: SubmitResponseRequest,
    handler: FromDishka[SubmitResponseHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Answer the current question.

    Returns the next question, or after question 10 the summary.
    Admission controlled: per-caller rate limit (429), global concurrency (503).
    """
    command = SubmitResponseCommand(
        user_id=current_user.user_id,
        conversation_id=_conversation_id(conversation_id),
        response=body.response,
    )
    try:
        result = await handler.execute(command)
    except _HANDLED as e:
        raise _http_error(e, "Failed to submit response") from e

    return SubmitResponseResponse(
        saved_response=MessageDTO.from_entity(result.saved_response),
        next_question=(
            MessageDTO.from_entity(result.next_question)
            if result.next_question
            else None
        ),
        is_complete=result.is_complete,
        summary=result.summary,
    )


@router.post(
    "/{conversation_id}/regenerate-question",
    response_model=QuestionResponse,
    status_code=status.HTTP_200_OK,
)
@inject
async def regenerate_question(
    conversation_id: str,
    handler: FromDishka[RegenerateQuestionHandler],
    current_user: AuthUser = Depends(require_permission(REGENERATE_PERMISSION)),
):
    """Replace the current, unanswered question. Requires the regeneration permission."""
    command = RegenerateQuestionCommand(
        user_id=current_user.user_id, conversation_id=_conversation_id(conversation_id)
    )
    try:
        question = await handler.execute(command)
    except _HANDLED as e:
        raise _http_error(e, "Failed to regenerate question") from e
    return QuestionResponse(question=MessageDTO.from_entity(question))


@router.post(
    "/{conversation_id}/regenerate-summary",
    response_model=SummaryResponse,
    status_code=status.HTTP_200_OK,
)
@inject
async def regenerate_summary(
    conversation_id: str,
    handler: FromDishka[RegenerateSummaryHandler],
    current_user: AuthUser = Depends(require_permission(REGENERATE_PERMISSION)),
):
    """Replace the summary of a completed conversation. Requires the regeneration permission."""
    command = RegenerateSummaryCommand(
        user_id=current_user.user_id, conversation_id=_conversation_id(conversation_id)
    )
    try:
        summary = await handler.execute(command)
    except _HANDLED as e:
        raise _http_error(e, "Failed to regenerate summary") from e
    return SummaryResponse(summary=summary.content)


@router.post(
    "/{conversation_id}/retry-question",
    response_model=QuestionResponse,
    status_code=status.HTTP_200_OK,
)
@inject
async def retry_question(
    conversation_id: str,
    handler: FromDishka[RetryQuestionHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """Generate the question a failed generation left missing."""
    command = RetryQuestionCommand(
        user_id=current_user.user_id, conversation_id=_conversation_id(conversation_id)
    )
    try:
        question = await handler.execute(command)
    except _HANDLED as e:
        raise _http_error(e, "Failed to generate question") from e
    return QuestionResponse(question=MessageDTO.from_entity(question))


@router.post(
    "/{conversation_id}/retry-summary",
    response_model=RetrySummaryResponse,
    status_code=status.HTTP_200_OK,
)
@inject
async def retry_summary(
    conversation_id: str,
    handler: FromDishka[RetrySummaryHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """Complete a conversation whose final answer is recorded but whose summary failed."""
    command = RetrySummaryCommand(
        user_id=current_user.user_id, conversation_id=_conversation_id(conversation_id)
    )
    try:
        summary = await handler.execute(command)
    except _HANDLED as e:
        raise _http_error(e, "Failed to generate summary") from e
    return RetrySummaryResponse(summary=summary.content, is_complete=True)


@router.get("/{conversation_id}/export")
@inject
async def export_conversation(
    conversation_id: str,
    handler: FromDishka[ExportConversationHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """Download the conversation as a markdown file."""
    query = ExportConversationQuery(
        user_id=current_user.user_id, conversation_id=_conversation_id(conversation_id)
    )
    try:
        result = await handler.execute(query)
    except EntityNotFoundError as e:
        raise _http_error(e, "Failed to export conversation") from e
    return Response(
        content=result.markdown,
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
