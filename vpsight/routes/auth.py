"""
Admin Session Endpoints

Login, logout and session status for the admin area.
"""

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response

from ..config import settings
from ..models.schemas import LoginRequest, LoginResponse, SessionStatus
from ..services.auth import AdminConfigurationError, admin_sessions
from .deps import require_admin

router = APIRouter(prefix="/api/admin", tags=["Admin Session"])


@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest, response: Response):
    """Check credentials and set the admin session cookie."""
    try:
        session = admin_sessions.login(credentials.username, credentials.password)
    except AdminConfigurationError:
        raise HTTPException(status_code=500, detail="Server configuration error.")

    if session is None:
        raise HTTPException(status_code=401, detail="Invalid username or password.")

    response.set_cookie(
        key=settings.admin.session_cookie,
        value=session.token,
        max_age=settings.admin.session_max_age,
        httponly=True,
        secure=settings.admin.secure_cookie,
        samesite="lax",
        path="/"
    )
    return LoginResponse(success=True)


@router.post("/logout", response_model=LoginResponse)
async def logout(
    response: Response,
    admin_session: str = Cookie(None, alias=settings.admin.session_cookie)
):
    """End the admin session and clear its cookie."""
    admin_sessions.logout(admin_session)
    response.delete_cookie(settings.admin.session_cookie, path="/")
    return LoginResponse(success=True)


@router.get("/session", response_model=SessionStatus)
async def session_status(session=Depends(require_admin)):
    """Report whether the caller holds a valid admin session."""
    return SessionStatus(authenticated=True, expires_at=session.expires_at)
