"""
Admin access dependency
"""
from typing import Optional

from fastapi import Header

from ..core.config import settings
from ..core.errors import AdminAuthError
from ..core.security import constant_time_equals


def require_admin(x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key")) -> None:
    """
    Require a matching X-Admin-Key header when ADMIN_API_KEY is configured.

    With no key configured (local/dev/test) admin routes are open;
    validate_config refuses to start production without one.
    """
    admin_key = settings.ADMIN_API_KEY
    if not admin_key:
        return None

    if not x_admin_key or not constant_time_equals(x_admin_key, admin_key):
        raise AdminAuthError("Invalid or missing X-Admin-Key header")
    return None
