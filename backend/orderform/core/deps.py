from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderform.core.db import get_session
from orderform.core.logging import actor_ctx_var
from orderform.core.security import decode_access_token
from orderform.models.admin_user import AdminUser

ADMIN_ROLE = "admin"


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> AdminUser:
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    token = auth.split(" ", 1)[1]
    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )
    user = (
        await session.execute(select(AdminUser).where(AdminUser.id == user_id))
    ).scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User inactive or not found",
        )
    request.state.actor = user.id
    actor_ctx_var.set(user.email)
    session.expunge(user)
    return user


async def get_current_admin(user: AdminUser = Depends(get_current_user)) -> AdminUser:
    if user.role != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Administrator role required"
        )
    return user
