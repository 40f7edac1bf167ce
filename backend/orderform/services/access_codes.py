"""Access-code lifecycle: issuance, consumption and administration.

A code moves from active to used at most once. Consumption is a conditional
UPDATE (``WHERE is_used = false AND is_active = true``) so that two
requests racing on the same code cannot both succeed; the loser sees zero
affected rows.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from orderform.core.audit import log_audit
from orderform.core.security import create_order_access_token
from orderform.models.access_code import AccessCode, utcnow

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 8
CODE_PATTERN = re.compile(r"^[A-Z0-9]{8}$")
MAX_SUBMITTED_CODE_LENGTH = 32
MAX_GENERATION_ATTEMPTS = 10

INVALID_CODE_MESSAGE = "Invalid or already used access code"
VALID_CODE_MESSAGE = "Access code validated"


class AccessCodeError(Exception):
    pass


class InvalidCodeFormat(AccessCodeError):
    pass


class DuplicateAccessCode(AccessCodeError):
    pass


@dataclass(frozen=True)
class CodeValidationResult:
    valid: bool
    message: str
    access_token: Optional[str] = None


def normalize_code(raw: Optional[str]) -> str:
    return (raw or "").strip().upper()


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


async def get_access_code(session: AsyncSession, code: str) -> Optional[AccessCode]:
    return await session.scalar(
        select(AccessCode).where(AccessCode.code == normalize_code(code))
    )


async def _code_exists(session: AsyncSession, code: str) -> bool:
    return (
        await session.scalar(select(AccessCode.id).where(AccessCode.code == code))
    ) is not None


async def create_access_code(
    session: AsyncSession,
    *,
    custom_code: Optional[str] = None,
    expires_in_hours: Optional[int] = None,
    created_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AccessCode:
    """Add a new active code to the session (the caller commits)."""

    now = now or utcnow()
    if custom_code is not None and custom_code.strip():
        code = normalize_code(custom_code)
        if not CODE_PATTERN.match(code):
            raise InvalidCodeFormat("Access code must be 8 letters or digits")
        if await _code_exists(session, code):
            raise DuplicateAccessCode(code)
    else:
        for _ in range(MAX_GENERATION_ATTEMPTS):
            code = generate_code()
            if not await _code_exists(session, code):
                break
        else:
            raise DuplicateAccessCode("could not generate a unique code")

    record = AccessCode(
        code=code,
        created_at=now,
        expires_at=now + timedelta(hours=expires_in_hours) if expires_in_hours else None,
        is_used=False,
        is_active=True,
        created_by=created_by,
    )
    session.add(record)
    await session.flush()
    return record


async def list_access_codes(
    session: AsyncSession, *, limit: int = 50, offset: int = 0
) -> tuple[Sequence[AccessCode], int]:
    total = (
        await session.execute(select(func.count()).select_from(AccessCode))
    ).scalar_one()
    rows = (
        await session.execute(
            select(AccessCode)
            .order_by(AccessCode.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
    ).scalars().all()
    return rows, total


async def deactivate_access_code(session: AsyncSession, code: str) -> Optional[AccessCode]:
    record = await get_access_code(session, code)
    if record is None:
        return None
    record.is_active = False
    await session.flush()
    return record


async def delete_access_code(session: AsyncSession, code: str) -> bool:
    record = await get_access_code(session, code)
    if record is None:
        return False
    await session.delete(record)
    await session.flush()
    return True


async def consume_access_code(
    session: AsyncSession, code_id: str, *, now: Optional[datetime] = None
) -> bool:
    """Flip ``is_used`` for a still-unused active code; False if another request won."""

    result = await session.execute(
        update(AccessCode)
        .where(
            AccessCode.id == code_id,
            AccessCode.is_used.is_(False),
            AccessCode.is_active.is_(True),
        )
        .values(is_used=True, used_at=now or utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def validate_access_code(
    session: AsyncSession,
    raw_code: Optional[str],
    *,
    remote_addr: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CodeValidationResult:
    """Consume a code and trade it for an order access token.

    Every rejection (unknown, used, inactive, expired, lost race) yields the
    same result so callers cannot tell them apart. Store errors propagate; no
    token is issued unless the consumption has been committed.
    """

    now = now or utcnow()
    code = normalize_code(raw_code)
    rejected = CodeValidationResult(valid=False, message=INVALID_CODE_MESSAGE)

    if not code or len(code) > MAX_SUBMITTED_CODE_LENGTH:
        logger.bind(reason="malformed").info("access_code_rejected")
        return rejected

    record = await session.scalar(select(AccessCode).where(AccessCode.code == code))
    if record is None:
        logger.bind(reason="unknown").info("access_code_rejected")
        return rejected

    status = record.status(now)
    if status != "active":
        logger.bind(reason=status, code_id=record.id).info("access_code_rejected")
        return rejected

    code_id = record.id
    if not await consume_access_code(session, code_id, now=now):
        await session.rollback()
        logger.bind(reason="conflict", code_id=code_id).info("access_code_rejected")
        return rejected

    await log_audit(
        session,
        "public",
        "access_code",
        code_id,
        "CONSUME",
        details=None,
        remote_addr=remote_addr,
    )
    await session.commit()

    token = create_order_access_token(code_id, now=now)
    logger.bind(code_id=code_id).info("access_code_consumed")
    return CodeValidationResult(valid=True, message=VALID_CODE_MESSAGE, access_token=token)
