"""
Homesite – Admin session gate.

Login stores a server-side session and hands the browser a signed cookie
holding only the session id. Logout (or expiry) drops the server-side
record, which invalidates the cookie even while its signature is valid.

Session backends:
  - memory:   per-process dict, lost on restart (default)
  - database: ``admin_sessions`` table via async SQLAlchemy
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings, get_settings
from app.models.admin_session import AdminSessionRecord

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # not a hash passlib recognises
        return False


def _same(stored, submitted) -> bool:
    # compare_digest only accepts ASCII str, so compare the UTF-8 bytes
    return secrets.compare_digest(str(stored).encode("utf-8"), (submitted or "").encode("utf-8"))


def check_admin_credentials(auth_doc: dict, email: str, password: str) -> tuple[bool, dict | None]:
    """Compare submitted credentials with the stored auth document.

    Returns ``(ok, replacement)``; ``replacement`` is a hashed document to
    write back when the stored one still holds a plaintext password.
    """
    stored_email = auth_doc.get("email")
    if not stored_email or not _same(stored_email, email):
        return False, None

    password_hash = auth_doc.get("password_hash")
    if password_hash:
        if not verify_password(password, password_hash):
            return False, None
        if pwd_context.needs_update(password_hash):
            return True, {"email": stored_email, "password_hash": hash_password(password)}
        return True, None

    legacy = auth_doc.get("password")
    if legacy and _same(legacy, password):
        return True, {"email": stored_email, "password_hash": hash_password(password)}
    return False, None


# ── Session store ────────────────────────────────────────────

@dataclass
class AdminSession:
    session_id: str
    email: str
    created_at: datetime
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expires_at


class SessionStore(Protocol):
    async def create(self, email: str) -> AdminSession: ...

    async def get(self, session_id: str) -> AdminSession | None: ...

    async def destroy(self, session_id: str) -> None: ...

    async def purge_expired(self) -> int: ...


def _new_session(email: str, ttl: timedelta) -> AdminSession:
    now = datetime.now(timezone.utc)
    return AdminSession(
        session_id=secrets.token_hex(32),
        email=email,
        created_at=now,
        expires_at=now + ttl,
    )


class MemorySessionStore:
    def __init__(self, ttl: timedelta):
        self.ttl = ttl
        self._sessions: dict[str, AdminSession] = {}

    async def create(self, email: str) -> AdminSession:
        session = _new_session(email, self.ttl)
        self._sessions[session.session_id] = session
        return session

    async def get(self, session_id: str) -> AdminSession | None:
        session = self._sessions.get(session_id)
        if session and session.is_expired:
            logger.info("Admin session expired for %s", session.email)
            self._sessions.pop(session_id, None)
            return None
        return session

    async def destroy(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def purge_expired(self) -> int:
        expired = [sid for sid, s in self._sessions.items() if s.is_expired]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class DatabaseSessionStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], ttl: timedelta):
        self.session_factory = session_factory
        self.ttl = ttl

    async def create(self, email: str) -> AdminSession:
        session = _new_session(email, self.ttl)
        async with self.session_factory() as db:
            db.add(AdminSessionRecord(
                session_id=session.session_id,
                email=email,
                created_at=session.created_at,
                expires_at=session.expires_at,
            ))
            await db.commit()
        return session

    async def get(self, session_id: str) -> AdminSession | None:
        async with self.session_factory() as db:
            result = await db.execute(
                select(AdminSessionRecord).where(AdminSessionRecord.session_id == session_id)
            )
            record = result.scalar_one_or_none()
            if not record:
                return None
            session = AdminSession(
                session_id=record.session_id,
                email=record.email,
                created_at=_aware(record.created_at),
                expires_at=_aware(record.expires_at),
            )
            if session.is_expired:
                logger.info("Admin session expired for %s", session.email)
                await db.delete(record)
                await db.commit()
                return None
            return session

    async def destroy(self, session_id: str) -> None:
        async with self.session_factory() as db:
            await db.execute(
                delete(AdminSessionRecord).where(AdminSessionRecord.session_id == session_id)
            )
            await db.commit()

    async def purge_expired(self) -> int:
        async with self.session_factory() as db:
            result = await db.execute(
                delete(AdminSessionRecord).where(
                    AdminSessionRecord.expires_at <= datetime.now(timezone.utc)
                )
            )
            await db.commit()
            return result.rowcount or 0


def build_session_store(settings: Settings) -> SessionStore:
    ttl = timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    if settings.SESSION_BACKEND == "database":
        from app.database import async_session
        return DatabaseSessionStore(async_session, ttl)
    if settings.SESSION_BACKEND != "memory":
        raise ValueError(f"Unknown SESSION_BACKEND: {settings.SESSION_BACKEND}")
    return MemorySessionStore(ttl)


# ── Session cookie ───────────────────────────────────────────

def create_session_token(session: AdminSession, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    payload = {
        "sid": session.session_id,
        "iat": int(session.created_at.timestamp()),
        "exp": session.expires_at,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str, settings: Settings | None = None) -> str | None:
    """Return the session id inside a valid cookie, or None."""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) else None


# ── FastAPI dependencies ─────────────────────────────────────

def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


async def get_current_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> AdminSession | None:
    """The authenticated admin session for this request, if any."""
    token = request.cookies.get(get_settings().SESSION_COOKIE_NAME)
    if not token:
        return None
    sid = decode_session_token(token)
    if not sid:
        return None
    return await store.get(sid)


async def require_admin(session: AdminSession | None = Depends(get_current_session)) -> AdminSession:
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return session
