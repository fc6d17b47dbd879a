import logging
from enum import Enum
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.models import AuditLog
from app.main import app


class _BrokenSession:
    async def __aenter__(self):
        raise RuntimeError("audit database unavailable")

    async def __aexit__(self, *exc):
        return False


class _Color(Enum):
    RED = "red"


@pytest.mark.asyncio
async def test_entries_are_written_with_serialized_metadata(audit: AuditRecorder, db_session: AsyncSession) -> None:
    actor, target = uuid4(), uuid4()
    audit.record("THING_CREATE", "Thing", target, performed_by=actor, metadata={"ref": target, "color": _Color.RED})
    audit.record("THING_SWEEP", "Thing", None)
    await audit.drain()

    result = await db_session.execute(select(AuditLog).order_by(AuditLog.action))
    create, sweep = result.scalars().all()
    assert create.entity_id == str(target)
    assert create.performed_by == actor
    assert create.metadata_ == {"ref": str(target), "color": "red"}
    assert sweep.entity_id == "N/A"
    assert sweep.performed_by is None


@pytest.mark.asyncio
async def test_failed_audit_write_does_not_fail_the_request(
    client: AsyncClient, admin_headers, caplog, db_session: AsyncSession
) -> None:
    broken = AuditRecorder(session_factory=_BrokenSession)
    app.dependency_overrides[get_audit_recorder] = lambda: broken

    with caplog.at_level(logging.ERROR):
        response = await client.post(
            "/api/v1/students", json={"first_name": "Ana", "last_name": "Lopez"}, headers=admin_headers
        )
        await broken.drain()

    assert response.status_code == 201
    assert "Audit write failed" in caplog.text
    result = await db_session.execute(select(AuditLog))
    assert result.scalars().all() == []


def test_record_without_event_loop_is_dropped(caplog) -> None:
    recorder = AuditRecorder()
    with caplog.at_level(logging.ERROR):
        recorder.record("THING_CREATE", "Thing", uuid4())
    assert "no running event loop" in caplog.text
