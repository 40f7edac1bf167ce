import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column

from orderform.models.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def access_code_status(
    is_used: bool,
    is_active: bool,
    expires_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> str:
    if is_used:
        return "used"
    if not is_active:
        return "inactive"
    expires_at = as_utc(expires_at)
    if expires_at is not None and expires_at <= (now or utcnow()):
        return "expired"
    return "active"


class AccessCode(Base):
    """One-time code that unlocks the order form."""

    __tablename__ = "access_codes"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    is_used: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("0")
    )
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("1")
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(36))

    def status(self, now: Optional[datetime] = None) -> str:
        return access_code_status(self.is_used, self.is_active, self.expires_at, now)

    def is_redeemable(self, now: Optional[datetime] = None) -> bool:
        return self.status(now) == "active"
