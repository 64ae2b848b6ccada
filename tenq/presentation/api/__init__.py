"""
API Routers - FastAPI endpoint definitions.
"""

from tenq.presentation.api.conversations import router as conversations_router
from tenq.presentation.api.health import router as health_router
from tenq.presentation.api.metrics import router as metrics_router

__all__ = [
    "conversations_router",
    "health_router",
    "metrics_router",
]
