# Tokengate Models
from tokengate.models.access_token import AccessToken
from tokengate.models.admin_user import AdminUser
from tokengate.models.base import BaseModel
from tokengate.models.token_audit_log import TokenAuditLog

__all__ = [
    "AccessToken",
    "AdminUser",
    "BaseModel",
    "TokenAuditLog",
]
