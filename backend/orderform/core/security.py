"""Password hashing and JWT helper utilities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from loguru import logger
from passlib.context import CryptContext

from orderform.core.concurrency import run_in_thread_security
from orderform.core.config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if the plain password matches the stored hash."""

    return pwd_context.verify(plain_password, hashed_password)


async def verify_password_async(plain: str, hashed: str) -> bool:
    """Verify the provided password hash in a background thread."""

    return await run_in_thread_security(verify_password, plain, hashed)


def get_password_hash(password: str) -> str:
    """Hash a password using the configured context."""

    return pwd_context.hash(password)


async def get_password_hash_async(plain: str) -> str:
    """Hash a password in a background thread to avoid blocking the loop."""

    return await run_in_thread_security(get_password_hash, plain)


# JWT helpers
ALGORITHM = "HS256"
ADMIN_TOKEN_TYPE = "access"
ORDER_TOKEN_TYPE = "order_access"


def _create_token(
    data: Dict[str, Any],
    expires: timedelta,
    *,
    audience: str,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    expire = now + expires
    to_encode = data.copy()
    to_encode.update(
        {
            "exp": expire,
            "iat": now,
            "iss": settings.JWT_ISSUER,
            "aud": audience,
        }
    )
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(data: Dict[str, Any]) -> str:
    """Admin session token."""
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES or 15
    return _create_token(
        {**data, "type": ADMIN_TOKEN_TYPE},
        timedelta(minutes=minutes),
        audience=settings.JWT_AUDIENCE,
    )


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode an admin token; raises ``JWTError`` when it is not one."""

    payload = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
    )
    if payload.get("type") != ADMIN_TOKEN_TYPE:
        raise JWTError("Invalid token type")
    return payload


@dataclass(frozen=True)
class OrderAccessClaims:
    code_id: str
    issued_at: datetime
    expires_at: datetime


def create_order_access_token(code_id: str, *, now: Optional[datetime] = None) -> str:
    """Issue the bearer token a client trades its access code for.

    The token carries the consumed code's id and a fixed lifetime of
    ``ORDER_TOKEN_TTL_SECONDS``. Nothing about it is stored server-side.
    """

    return _create_token(
        {"sub": code_id, "type": ORDER_TOKEN_TYPE},
        timedelta(seconds=settings.ORDER_TOKEN_TTL_SECONDS),
        audience=settings.ORDER_TOKEN_AUDIENCE,
        now=now,
    )


def verify_order_access_token(
    token: Optional[str], *, now: Optional[datetime] = None
) -> Optional[OrderAccessClaims]:
    """Return the token's claims if the signature and expiry hold, else None.

    Expiry is compared against ``now`` rather than left to jose so that
    callers can supply their own clock. The code store is not consulted.
    """

    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[ALGORITHM],
            audience=settings.ORDER_TOKEN_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"verify_exp": False, "require_exp": True, "require_sub": True},
        )
    except JWTError as exc:
        logger.bind(error=str(exc)).info("order_token_rejected")
        return None

    if payload.get("type") != ORDER_TOKEN_TYPE:
        logger.info("order_token_wrong_type")
        return None
    try:
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        issued_at = datetime.fromtimestamp(int(payload.get("iat", 0)), tz=timezone.utc)
    except (TypeError, ValueError):
        return None

    now = now or datetime.now(timezone.utc)
    if now >= expires_at:
        logger.bind(expired_at=expires_at.isoformat()).info("order_token_expired")
        return None
    return OrderAccessClaims(
        code_id=str(payload["sub"]), issued_at=issued_at, expires_at=expires_at
    )


def verify_order_token(token: Optional[str], *, now: Optional[datetime] = None) -> bool:
    return verify_order_access_token(token, now=now) is not None
