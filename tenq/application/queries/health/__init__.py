"""Health queries."""

from tenq.application.queries.health.deep_ping import (
    DeepPingQuery,
    DeepPingHandler,
    DeepPingResult,
)

__all__ = ["DeepPingQuery", "DeepPingHandler", "DeepPingResult"]
