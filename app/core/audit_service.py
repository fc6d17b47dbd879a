"""
Audit trail for state changes. Call on every create/update/deactivate.

Writes are detached: `record` schedules the insert on its own session and
returns at once. A failed write is logged and dropped; it never reaches the
request that triggered it.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, Optional, Set
from uuid import UUID

from app.core.app_logger import get_logger
from app.core.models import AuditLog
from app.db.session import AsyncSessionLocal

logger = get_logger("audit")


class AuditRecorder:
    def __init__(self, session_factory=AsyncSessionLocal) -> None:
        self._session_factory = session_factory
        self._pending: Set[asyncio.Task] = set()

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[Any],
        *,
        performed_by: Optional[UUID] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append one audit entry (fire-and-forget, at most once)."""
        entry = {
            "action": action,
            "entity_type": entity_type,
            "entity_id": str(entity_id) if entity_id is not None else "N/A",
            "performed_by": performed_by,
            "metadata_": _jsonable(metadata or {}),
        }
        try:
            task = asyncio.get_running_loop().create_task(self._write(entry))
        except RuntimeError:
            logger.error("Audit %s for %s %s dropped: no running event loop", action, entity_type, entry["entity_id"])
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, entry: Dict[str, Any]) -> None:
        try:
            async with self._session_factory() as session:
                session.add(AuditLog(**entry))
                await session.commit()
        except Exception:
            logger.exception(
                "Audit write failed for %s %s %s",
                entry["action"],
                entry["entity_type"],
                entry["entity_id"],
            )

    async def drain(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    # UUID, date, datetime
    return str(value)


audit_recorder = AuditRecorder()


def get_audit_recorder() -> AuditRecorder:
    return audit_recorder
