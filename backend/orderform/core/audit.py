"""Audit logging utilities."""

from __future__ import annotations

import json
from typing import Any, Optional

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from orderform.models.audit_log import AuditLog


async def log_audit(
    session: AsyncSession,
    actor: str,
    entity: str,
    entity_id: Optional[str],
    action: str,
    details: Optional[dict[str, Any]] = None,
    remote_addr: Optional[str] = None,
    *,
    independent_txn: bool = False,
) -> None:
    """Insert an audit row.

    By default the row joins the caller's transaction and is committed (or
    rolled back) with it. ``independent_txn`` writes it through a fresh session
    bound to the same engine, for read-only endpoints that never commit.
    """

    payload = {
        "actor": actor,
        "entity": entity,
        "entity_id": entity_id,
        "action": action,
        "details": json.dumps(details, default=str) if details is not None else None,
        "remote_addr": remote_addr,
    }
    if independent_txn:
        async with AsyncSession(bind=session.bind, expire_on_commit=False) as audit_session:
            async with audit_session.begin():
                await audit_session.execute(insert(AuditLog).values(**payload))
        return

    await session.execute(insert(AuditLog).values(**payload))
