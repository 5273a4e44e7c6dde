from .config import settings, get_settings
from .security import (
    create_access_token,
    verify_access_token,
    verify_cron_secret,
    verify_password,
    get_password_hash
)
from .permissions import Role, parse_role, role_at_least, is_staff

__all__ = [
    "settings",
    "get_settings",
    "create_access_token",
    "verify_access_token",
    "verify_cron_secret",
    "verify_password",
    "get_password_hash",
    "Role",
    "parse_role",
    "role_at_least",
    "is_staff"
]
