"""
Admin Session Service

Checks admin credentials from the configuration and keeps the server-side
list of logged-in admin sessions. Each session owns its dashboard view.
"""

import hmac
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional

from ..config import AdminSettings, settings
from .dashboard import DashboardView

logger = logging.getLogger(__name__)


class AdminConfigurationError(Exception):
    """Admin credentials are missing from the configuration."""


@dataclass
class AdminSession:
    token: str
    username: str
    expires_at: datetime
    view: DashboardView = field(default_factory=DashboardView)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.utcnow()) >= self.expires_at


class AdminSessionStore:
    """In-memory admin sessions keyed by cookie token."""

    def __init__(self, admin_settings: Optional[AdminSettings] = None):
        self.admin = admin_settings or settings.admin
        self._sessions: Dict[str, AdminSession] = {}

    def check_credentials(self, username: str, password: str) -> bool:
        if not self.admin.is_configured:
            raise AdminConfigurationError("Admin credentials are not set in the configuration")

        username_ok = hmac.compare_digest(username.encode(), self.admin.username.encode())
        password_ok = hmac.compare_digest(password.encode(), self.admin.password.encode())
        return username_ok and password_ok

    def login(self, username: str, password: str) -> Optional[AdminSession]:
        """Open a session, or None for wrong credentials."""
        if not self.check_credentials(username, password):
            logger.warning(f"Failed admin login for {username!r}")
            return None

        self._purge_expired()
        session = AdminSession(
            token=secrets.token_urlsafe(32),
            username=username,
            expires_at=datetime.utcnow() + timedelta(seconds=self.admin.session_max_age)
        )
        self._sessions[session.token] = session
        logger.info(f"Admin {username!r} logged in")
        return session

    def get(self, token: Optional[str]) -> Optional[AdminSession]:
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.is_expired():
            del self._sessions[token]
            return None
        return session

    def logout(self, token: Optional[str]) -> bool:
        session = self._sessions.pop(token, None) if token else None
        if session:
            logger.info(f"Admin {session.username!r} logged out")
        return session is not None

    def _purge_expired(self) -> None:
        now = datetime.utcnow()
        for token in [t for t, s in self._sessions.items() if s.is_expired(now)]:
            del self._sessions[token]


# Shared by the admin routes
admin_sessions = AdminSessionStore()
