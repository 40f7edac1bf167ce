from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from orderform.models.access_code import access_code_status


class AccessCodeValidationIn(BaseModel):
    code: Optional[str] = None


class AccessCodeValidationOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    valid: bool
    message: str
    access_token: Optional[str] = None


class AccessCodeCreate(BaseModel):
    """Accepts ``customCode``/``expiresInHours`` as well as snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    custom_code: Optional[str] = Field(default=None, max_length=16)
    expires_in_hours: Optional[int] = Field(default=None, ge=1, le=24 * 365)
    notify: bool = False


class AccessCodeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    is_used: bool
    used_at: Optional[datetime] = None
    is_active: bool

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> str:
        return access_code_status(self.is_used, self.is_active, self.expires_at)


class AccessCodeListOut(BaseModel):
    items: List[AccessCodeOut]
    total: int
