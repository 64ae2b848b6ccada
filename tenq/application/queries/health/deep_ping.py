"""
DeepPing Query - readiness of the store and the text-generation provider.

Only the store decides readiness. The provider is reported (configured,
reachable, breaker state) but an unconfigured or failing provider still
leaves the service ready: conversations can be read, exported and deleted
without it.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from tenq.application.common.interfaces import Query, QueryHandler
from tenq.domain.ports.repositories import ConversationStore
from tenq.domain.ports.text_generator import TextGenerator

logger = logging.getLogger(__name__)


@dataclass
class DeepPingResult:
    ok: bool
    latency_ms: int
    checks: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeepPingQuery(Query[DeepPingResult]):
    pass


class DeepPingHandler(QueryHandler[DeepPingResult]):
    def __init__(self, store: ConversationStore, generator: TextGenerator):
        self._store = store
        self._generator = generator

    async def execute(self, query: DeepPingQuery) -> DeepPingResult:
        start = time.perf_counter()

        database: dict[str, Any] = {"ok": True}
        try:
            await self._store.health_check()
        except Exception as e:
            logger.error("[Health] Database check failed: %s", e)
            database = {"ok": False, "error": type(e).__name__}
        database["latency_ms"] = round((time.perf_counter() - start) * 1000)

        openai = await self._generator.check_health()

        return DeepPingResult(
            ok=database["ok"],
            latency_ms=round((time.perf_counter() - start) * 1000),
            checks={"database": database, "openai": openai},
        )
