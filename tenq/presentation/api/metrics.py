"""
Prometheus Metrics Endpoint.

PURPOSE:
    Expose /metrics for the Prometheus scraper.

DATA FLOW:
    observability/metrics.py         This file                    Scraper
    ────────────────────────         ─────────                    ───────
    Define & record metrics ──────►  /metrics endpoint ──────────► Prometheus ──► Grafana

ACCESS:
    When METRICS_TOKEN is set the scraper must send
    `Authorization: Bearer <METRICS_TOKEN>`; the token is compared in
    constant time. Unset, the endpoint is open.

    Test with: curl -H "Authorization: Bearer $METRICS_TOKEN" http://localhost:3001/metrics
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tenq.config.settings import Config
from tenq.observability.metrics import get_metrics_content

router = APIRouter(prefix="/metrics", tags=["observability"])

_bearer = HTTPBearer(auto_error=False)


async def verify_metrics_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> None:
    expected = Config.METRICS_TOKEN
    if not expected:
        return
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required"
        )
    if not hmac.compare_digest(
        credentials.credentials.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


@router.get("", dependencies=[Depends(verify_metrics_token)])
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    content, content_type = get_metrics_content()
    return Response(content=content, media_type=content_type)
