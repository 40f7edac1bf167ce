"""Operator accounts for the administrative surface."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from orderform.core.deps import ADMIN_ROLE
from orderform.core.security import get_password_hash_async, verify_password_async
from orderform.models.admin_user import AdminUser

MIN_PASSWORD_LENGTH = 12


class AdminAlreadyExists(Exception):
    pass


async def create_admin(
    session: AsyncSession,
    email: str,
    password: str,
    *,
    display_name: str = "",
    role: str = ADMIN_ROLE,
) -> AdminUser:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    user = AdminUser(
        email=email.strip().lower(),
        password_hash=await get_password_hash_async(password),
        display_name=display_name or email,
        role=role,
        is_active=True,
    )
    session.add(user)
    await session.flush()
    return user


async def bootstrap_admin(session: AsyncSession, email: str, password: str) -> AdminUser:
    """Create the first administrator; refuses once one exists."""

    existing = await session.scalar(
        select(AdminUser.id).where(AdminUser.role == ADMIN_ROLE).limit(1)
    )
    if existing is not None:
        raise AdminAlreadyExists("An administrator already exists")
    user = await create_admin(session, email, password)
    await session.commit()
    logger.bind(admin_id=user.id).info("admin_bootstrapped")
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> Optional[AdminUser]:
    user = await session.scalar(
        select(AdminUser).where(AdminUser.email == email.strip().lower())
    )
    if not user or not user.is_active:
        return None
    if not await verify_password_async(password, user.password_hash):
        return None

    # Only stamp last_login_at on successful login
    await session.execute(
        update(AdminUser)
        .where(AdminUser.id == user.id)
        .values(last_login_at=datetime.now(timezone.utc))
    )
    return user
