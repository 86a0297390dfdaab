"""
Homesite – Admin authentication routes.
login, logout, session status, credential update.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr, Field

from app.config import get_settings
from app.exceptions import StorageError, ValidationError
from app.middleware.auth import (
    AdminSession,
    SessionStore,
    check_admin_credentials,
    create_session_token,
    decode_session_token,
    get_current_session,
    get_session_store,
    hash_password,
    require_admin,
)
from app.middleware.rate_limit import check_login_rate, reset_login_attempts
from app.services.config_store import ConfigStore, get_config_store
from app.services.setting_groups import AUTH

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class UpdateCredentialsRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., max_length=200)


# ── Login ─────────────────────────────────────────────────────

@router.post("/login")
async def login(
    req: LoginRequest,
    request: Request,
    response: Response,
    store: ConfigStore = Depends(get_config_store),
    sessions: SessionStore = Depends(get_session_store),
):
    """Check the submitted credentials and open an admin session."""
    client_ip = request.client.host if request.client else "unknown"
    check_login_rate(client_ip)

    try:
        auth_doc = store.read(AUTH.key)
    except StorageError:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Login failed")

    ok, replacement = check_admin_credentials(auth_doc, req.email, req.password)
    if not ok:
        logger.warning("Failed admin login for %s from %s", req.email, client_ip)
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    if replacement is not None:
        try:
            store.write(AUTH.key, replacement)
            logger.info("Stored admin password as a hash")
        except StorageError:
            logger.error("Could not rehash stored admin password")

    purged = await sessions.purge_expired()
    if purged:
        logger.info("Purged %d expired admin session(s)", purged)

    settings = get_settings()
    session = await sessions.create(req.email)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(session, settings),
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    reset_login_attempts(client_ip)
    logger.info("Admin login succeeded for %s", req.email)
    return {"success": True}


# ── Logout ────────────────────────────────────────────────────

@router.get("/logout")
async def logout(request: Request, sessions: SessionStore = Depends(get_session_store)):
    """Destroy the admin session and go back to the login portal."""
    settings = get_settings()
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    sid = decode_session_token(token, settings) if token else None
    if sid:
        await sessions.destroy(sid)
        logger.info("Admin session destroyed")

    redirect = RedirectResponse("/portal.html", status_code=status.HTTP_302_FOUND)
    redirect.delete_cookie(settings.SESSION_COOKIE_NAME)
    return redirect


@router.get("/status")
async def auth_status(session: AdminSession | None = Depends(get_current_session)):
    return {"authenticated": session is not None, "email": session.email if session else None}


# ── Credentials ───────────────────────────────────────────────

@router.post("/update-credentials")
async def update_credentials(
    req: UpdateCredentialsRequest,
    admin: AdminSession = Depends(require_admin),
    store: ConfigStore = Depends(get_config_store),
):
    """Replace the admin email/password (stored as a bcrypt hash)."""
    if not req.password.strip():
        raise ValidationError("Password must not be empty.")
    try:
        store.write(AUTH.key, {"email": req.email, "password_hash": hash_password(req.password)})
    except StorageError:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update credentials.")
    logger.info("Admin credentials updated by %s", admin.email)
    return {"success": True}
