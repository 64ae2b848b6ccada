"""
Health API Router.

- GET /ping       liveness, no dependencies touched
- GET /deep-ping  readiness: store check (decides the status code) plus a
                  report on the text-generation provider
"""

from typing import Optional

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse, PlainTextResponse

from tenq.application.dto.conversation import CamelModel
from tenq.application.queries.health import DeepPingHandler, DeepPingQuery


class DatabaseCheck(CamelModel):
    ok: bool
    latency_ms: Optional[int] = None
    error: Optional[str] = None


class OpenAICheck(CamelModel):
    ok: bool
    latency_ms: Optional[int] = None
    error: Optional[str] = None
    circuit_open: Optional[bool] = None
    circuit_state: Optional[str] = None


class DeepPingChecks(CamelModel):
    database: DatabaseCheck
    openai: OpenAICheck


class DeepPingResponse(CamelModel):
    ok: bool
    latency_ms: int
    checks: DeepPingChecks


router = APIRouter(tags=["health"])


@router.get("/ping", response_class=PlainTextResponse)
async def ping():
    return "ok"


@router.get("/deep-ping", response_model=DeepPingResponse)
@inject
async def deep_ping(handler: FromDishka[DeepPingHandler]):
    result = await handler.execute(DeepPingQuery())
    body = DeepPingResponse(
        ok=result.ok,
        latency_ms=result.latency_ms,
        checks=DeepPingChecks(
            database=DatabaseCheck(**result.checks["database"]),
            openai=OpenAICheck(**result.checks["openai"]),
        ),
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )
