"""
Homesite – Contact form relay and outbound mail settings.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from app.config import get_settings
from app.exceptions import StorageError, UpstreamMailError, ValidationError
from app.middleware.auth import AdminSession, require_admin
from app.services.config_store import ConfigStore, get_config_store
from app.services.email import (
    ContactMessage,
    resolve_email_config,
    send_contact_email,
    verify_smtp_credentials,
)
from app.services.setting_groups import EMAIL

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/email", tags=["email"])


class ContactRequest(BaseModel):
    name: str = ""
    email: str = ""
    phone: str | None = None
    message: str = ""
    interests: list[str] = Field(default_factory=list)


class EmailSettingsUpdate(BaseModel):
    senderEmail: str | None = None
    recipientEmail: str | None = None
    appPassword: str | None = None


class VerifyRequest(BaseModel):
    senderEmail: str
    appPassword: str


def _public_view(config: dict) -> dict:
    return {
        "senderEmail": config.get("senderEmail"),
        "recipientEmail": config.get("recipientEmail"),
        "hasPassword": bool(config.get("appPassword")),
    }


# ── Contact form ─────────────────────────────────────────────

@router.post("/contact")
async def submit_contact(req: ContactRequest, store: ConfigStore = Depends(get_config_store)):
    """Relay a visitor's message to the site owner."""
    missing = [f for f in ("name", "email", "message") if not getattr(req, f).strip()]
    if missing:
        raise ValidationError("Please fill in Name, Email and Message.")

    settings = get_settings()
    try:
        config = resolve_email_config(store, settings)
    except StorageError:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Email service is not configured.")
    if not config.is_complete:
        logger.error("Email settings are incomplete. senderEmail/appPassword/recipientEmail are required.")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Email service is not configured.")

    contact = ContactMessage(
        name=req.name.strip(),
        email=req.email.strip(),
        phone=(req.phone or "").strip(),
        message=req.message,
        interests=req.interests,
    )
    await send_contact_email(config, contact, settings.CONTACT_SUBJECT)
    return {"success": True}


# ── Mail settings (admin) ────────────────────────────────────

@router.get("/settings")
async def get_email_settings(
    admin: AdminSession = Depends(require_admin),
    store: ConfigStore = Depends(get_config_store),
):
    try:
        return _public_view(store.read(EMAIL.key))
    except StorageError:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to read email settings.")


@router.post("/settings")
async def save_email_settings(
    req: EmailSettingsUpdate,
    admin: AdminSession = Depends(require_admin),
    store: ConfigStore = Depends(get_config_store),
):
    """Update the keys that were sent; the others keep their stored values."""
    try:
        config = store.read(EMAIL.key)
        config.update(req.model_dump(exclude_none=True))
        store.write(EMAIL.key, config)
    except StorageError:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save email settings.")
    logger.info("Email settings updated by %s", admin.email)
    return {"success": True, "settings": _public_view(config)}


@router.post("/settings/verify")
async def verify_email_settings(
    req: VerifyRequest,
    admin: AdminSession = Depends(require_admin),
    store: ConfigStore = Depends(get_config_store),
):
    """Log in to the SMTP relay with the given credentials and keep them if it works."""
    settings = get_settings()
    try:
        await verify_smtp_credentials(
            settings.EMAIL_SMTP_HOST,
            settings.EMAIL_SMTP_PORT,
            req.senderEmail,
            req.appPassword,
            settings.SMTP_TIMEOUT,
        )
    except UpstreamMailError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, e.message)

    try:
        config = store.read(EMAIL.key)
        config["appPassword"] = req.appPassword
        config["senderEmail"] = req.senderEmail
        store.write(EMAIL.key, config)
    except StorageError:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save email settings.")
    return {"success": True}
