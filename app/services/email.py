"""
Homesite – Email relay for the public contact form.

Credentials come from the environment first and fall back to the
emailSettings document, so an operator can either pin them in ``.env``
or manage them from the admin panel.
"""

import asyncio
import html
import logging
import re
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from app.config import Settings
from app.exceptions import UpstreamMailError
from app.services.config_store import ConfigStore
from app.services.setting_groups import EMAIL

logger = logging.getLogger(__name__)


@dataclass
class EmailConfig:
    sender_email: str
    app_password: str
    recipient_email: str
    host: str
    port: int
    timeout: int = 30

    @property
    def is_complete(self) -> bool:
        return bool(self.sender_email and self.app_password and self.recipient_email)


@dataclass
class ContactMessage:
    name: str
    email: str
    message: str
    phone: str = ""
    interests: list[str] | None = None


def _extract_email(from_str: str) -> str:
    """Extract bare email from 'Display Name <email>' format."""
    match = re.search(r'<([^>]+)>', from_str)
    if match:
        return match.group(1)
    return from_str.strip()


def resolve_email_config(store: ConfigStore, settings: Settings) -> EmailConfig:
    file_config = store.read(EMAIL.key)
    return EmailConfig(
        sender_email=settings.EMAIL_SENDER or file_config.get("senderEmail") or "",
        app_password=settings.EMAIL_APP_PASSWORD or file_config.get("appPassword") or "",
        recipient_email=settings.EMAIL_RECIPIENT or file_config.get("recipientEmail") or "",
        host=settings.EMAIL_SMTP_HOST,
        port=settings.EMAIL_SMTP_PORT,
        timeout=settings.SMTP_TIMEOUT,
    )


def _open_smtp(host: str, port: int, timeout: int) -> smtplib.SMTP:
    context = ssl.create_default_context()
    if port == 465:
        return smtplib.SMTP_SSL(host, port, timeout=timeout, context=context)
    server = smtplib.SMTP(host, port, timeout=timeout)
    server.ehlo()
    server.starttls(context=context)
    server.ehlo()
    return server


def build_contact_html(contact: ContactMessage) -> str:
    esc = html.escape
    interests = [i for i in (contact.interests or []) if i]
    return f"""
        <h3>New Contact Form Submission</h3>
        <p><strong>Name:</strong> {esc(contact.name)}</p>
        <p><strong>Email:</strong> {esc(contact.email)}</p>
        <p><strong>Phone:</strong> {esc(contact.phone) if contact.phone else 'Not provided'}</p>
        <p><strong>Interests:</strong> {esc(', '.join(interests)) if interests else 'None specified'}</p>
        <p><strong>Message:</strong></p>
        <p>{esc(contact.message)}</p>
    """


def _send_contact_email_sync(config: EmailConfig, contact: ContactMessage, subject: str):
    # Envelope sender must be the bare authenticated address
    sender = _extract_email(config.sender_email)

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = formataddr((contact.name, sender))
    msg["To"] = config.recipient_email
    msg["Reply-To"] = contact.email
    msg.attach(MIMEText(build_contact_html(contact), "html", "utf-8"))

    try:
        with _open_smtp(config.host, config.port, config.timeout) as server:
            server.login(sender, config.app_password)
            server.sendmail(sender, [config.recipient_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send contact email from %s: %s", contact.email, e)
        raise UpstreamMailError("Failed to send message.") from e
    logger.info("Contact email from %s relayed to %s", contact.email, config.recipient_email)


def _verify_login_sync(host: str, port: int, user: str, password: str, timeout: int):
    try:
        with _open_smtp(host, port, timeout) as server:
            server.login(user, password)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("SMTP verification failed for %s@%s:%s – %s", user, host, port, e)
        raise UpstreamMailError("Verification failed. Please check credentials.") from e
    logger.info("SMTP credentials verified for %s", user)


async def send_contact_email(config: EmailConfig, contact: ContactMessage, subject: str):
    """Relay a contact form submission to the site owner (runs in a worker thread)."""
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _send_contact_email_sync, config, contact, subject)


async def verify_smtp_credentials(host: str, port: int, user: str, password: str, timeout: int = 30):
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _verify_login_sync, host, port, user, password, timeout)
