from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from orderform.core.audit import log_audit
from orderform.core.config import settings
from orderform.core.db import get_session
from orderform.core.deps import get_current_user
from orderform.core.logging import actor_ctx_var
from orderform.core.security import create_access_token
from orderform.models.admin_user import AdminUser
from orderform.schemas.auth import AdminOut, LoginRequest, TokenOut
from orderform.services.admin_users import authenticate

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenOut)
async def login(
    payload: LoginRequest,
    request: Request,
    session: AsyncSession = Depends(get_session),
):
    user = await authenticate(session, payload.email, payload.password)
    remote_addr = request.client.host if request.client else None
    if user is None:
        await log_audit(
            session,
            payload.email.strip().lower()[:64],
            "auth",
            None,
            "LOGIN_FAILED",
            details={"reason": "invalid_credentials"},
            remote_addr=remote_addr,
        )
        await session.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )

    actor_ctx_var.set(user.email)
    access_token = create_access_token({"sub": user.id, "role": user.role})

    await log_audit(
        session,
        user.id,
        "auth",
        None,
        "LOGIN",
        details=None,
        remote_addr=remote_addr,
    )
    await session.commit()
    return TokenOut(
        access_token=access_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.get("/me", response_model=AdminOut)
async def me(user: AdminUser = Depends(get_current_user)):
    return user
