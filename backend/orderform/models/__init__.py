"""ORM model exports for convenient imports elsewhere in the app."""

from orderform.models.base import Base
from orderform.models.access_code import AccessCode
from orderform.models.admin_user import AdminUser
from orderform.models.audit_log import AuditLog

__all__ = [
    "Base",
    "AccessCode",
    "AdminUser",
    "AuditLog",
]
