"""Fire-and-forget audit trail for authentication and privileged reads."""

import asyncio
import json
from abc import ABC, abstractmethod
from collections import deque

import structlog

from waitlist.models.audit import AuditAction, AuditEntry

logger = structlog.get_logger()

MAX_AUDIT_ENTRIES = 1000
AUDIT_LIST_KEY = "audit:entries"


class AuditSink(ABC):
    """Write-only destination for audit entries."""

    @abstractmethod
    async def write(self, entry: AuditEntry) -> None:
        ...


class InMemoryAuditSink(AuditSink):
    """Keeps the most recent entries in process memory."""

    def __init__(self, max_entries: int = MAX_AUDIT_ENTRIES) -> None:
        self.entries: deque[AuditEntry] = deque(maxlen=max_entries)

    async def write(self, entry: AuditEntry) -> None:
        self.entries.appendleft(entry)


class RedisAuditSink(AuditSink):
    """Pushes entries onto a capped Redis list."""

    def __init__(self, client, key: str = AUDIT_LIST_KEY, max_entries: int = MAX_AUDIT_ENTRIES) -> None:
        self._client = client
        self._key = key
        self._max_entries = max_entries

    async def write(self, entry: AuditEntry) -> None:
        payload = json.dumps(entry.model_dump(mode="json"))
        async with self._client.pipeline(transaction=False) as pipe:
            pipe.lpush(self._key, payload)
            pipe.ltrim(self._key, 0, self._max_entries - 1)
            await pipe.execute()


class AuditTrail:
    """Records audit entries without blocking the caller.

    Every entry is logged immediately; delivery to the sink runs as a
    background task whose failure is logged and dropped.
    """

    def __init__(self, sink: AuditSink | None = None) -> None:
        self.sink = sink
        self._pending: set[asyncio.Task] = set()

    def record(
        self,
        action: AuditAction,
        ip: str,
        success: bool,
        reason: str | None = None,
        endpoint: str | None = None,
    ) -> AuditEntry:
        entry = AuditEntry(action=action, ip=ip, success=success, reason=reason, endpoint=endpoint)
        logger.info(
            "audit",
            action=entry.action.value,
            ip=entry.ip,
            success=entry.success,
            reason=entry.reason,
            endpoint=entry.endpoint,
        )

        if self.sink is not None:
            task = asyncio.get_running_loop().create_task(self._deliver(entry))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        return entry

    async def _deliver(self, entry: AuditEntry) -> None:
        try:
            await self.sink.write(entry)
        except Exception as e:
            logger.warning("audit_sink_write_failed", action=entry.action.value, error=str(e))

    async def flush(self) -> None:
        """Wait for pending deliveries (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
