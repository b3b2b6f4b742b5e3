"""
Shared route dependencies

The wall clock and the admin session gate, both overridable in tests
through app.dependency_overrides.
"""

from datetime import datetime

from fastapi import Cookie, HTTPException

from ..config import settings
from ..services.auth import AdminSession, admin_sessions


def get_now() -> datetime:
    """Current local time used for billing calculations."""
    return datetime.now()


def require_admin(
    admin_session: str = Cookie(None, alias=settings.admin.session_cookie)
) -> AdminSession:
    """Reject requests without a valid admin session cookie."""
    session = admin_sessions.get(admin_session)
    if session is None:
        raise HTTPException(status_code=401, detail="Admin login required")
    return session
