"""Tests for credential checks, session stores and session cookies."""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.database import Base
from app.middleware.auth import (
    DatabaseSessionStore,
    MemorySessionStore,
    build_session_store,
    check_admin_credentials,
    create_session_token,
    decode_session_token,
    hash_password,
    verify_password,
)
from app.middleware.rate_limit import check_login_rate, reset_login_attempts
from app.models import AdminSessionRecord  # noqa: F401


class TestCredentials:
    def test_hashed_password_matches(self):
        doc = {"email": "owner@example.com", "password_hash": hash_password("s3cret")}

        assert check_admin_credentials(doc, "owner@example.com", "s3cret") == (True, None)

    @pytest.mark.parametrize("email, password", [
        ("owner@example.com", "wrong"),
        ("other@example.com", "s3cret"),
        ("", ""),
        ("ownér@example.com", "s3cret"),
        ("owner@example.com", "sécret"),
    ])
    def test_wrong_credentials_rejected(self, email, password):
        doc = {"email": "owner@example.com", "password_hash": hash_password("s3cret")}

        ok, replacement = check_admin_credentials(doc, email, password)

        assert ok is False
        assert replacement is None

    def test_no_stored_credentials_rejects_everything(self):
        assert check_admin_credentials({}, "", "") == (False, None)
        assert check_admin_credentials({}, "owner@example.com", "x") == (False, None)

    def test_legacy_plaintext_is_accepted_once_and_rehashed(self):
        doc = {"email": "owner@example.com", "password": "plain"}

        ok, replacement = check_admin_credentials(doc, "owner@example.com", "plain")

        assert ok is True
        assert "password" not in replacement
        assert verify_password("plain", replacement["password_hash"])

    def test_legacy_plaintext_with_accents(self):
        doc = {"email": "owner@example.com", "password": "pässwörd"}

        ok, replacement = check_admin_credentials(doc, "owner@example.com", "pässwörd")

        assert ok is True
        assert verify_password("pässwörd", replacement["password_hash"])

    def test_legacy_plaintext_mismatch(self):
        doc = {"email": "owner@example.com", "password": "plain"}
        assert check_admin_credentials(doc, "owner@example.com", "Plain") == (False, None)

    def test_verify_password_tolerates_garbage_hash(self):
        assert verify_password("x", "not-a-hash") is False


class TestSessionToken:
    async def test_round_trip(self):
        settings = Settings(SECRET_KEY="k1")
        session = await MemorySessionStore(timedelta(hours=1)).create("owner@example.com")

        token = create_session_token(session, settings)

        assert decode_session_token(token, settings) == session.session_id

    async def test_wrong_key_or_expired_token_is_rejected(self):
        session = await MemorySessionStore(timedelta(hours=1)).create("owner@example.com")
        token = create_session_token(session, Settings(SECRET_KEY="k1"))
        assert decode_session_token(token, Settings(SECRET_KEY="k2")) is None

        expired = await MemorySessionStore(timedelta(seconds=-5)).create("owner@example.com")
        assert decode_session_token(create_session_token(expired, Settings()), Settings()) is None

    def test_garbage_token(self):
        assert decode_session_token("not.a.jwt", Settings()) is None


class TestMemorySessionStore:
    async def test_create_get_destroy(self):
        store = MemorySessionStore(timedelta(hours=1))

        session = await store.create("owner@example.com")
        assert (await store.get(session.session_id)).email == "owner@example.com"

        await store.destroy(session.session_id)
        assert await store.get(session.session_id) is None

    async def test_expired_session_is_absent(self):
        store = MemorySessionStore(timedelta(seconds=-1))
        session = await store.create("owner@example.com")

        assert await store.get(session.session_id) is None

    async def test_purge_expired(self):
        store = MemorySessionStore(timedelta(seconds=-1))
        await store.create("a@example.com")
        await store.create("b@example.com")

        assert await store.purge_expired() == 2
        assert await store.purge_expired() == 0


class TestDatabaseSessionStore:
    @pytest.fixture
    async def session_factory(self):
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        await engine.dispose()

    async def test_create_get_destroy(self, session_factory):
        store = DatabaseSessionStore(session_factory, timedelta(hours=1))

        session = await store.create("owner@example.com")
        loaded = await store.get(session.session_id)

        assert loaded.email == "owner@example.com"
        assert loaded.expires_at.tzinfo is not None
        assert not loaded.is_expired

        await store.destroy(session.session_id)
        assert await store.get(session.session_id) is None

    async def test_unknown_session(self, session_factory):
        store = DatabaseSessionStore(session_factory, timedelta(hours=1))
        assert await store.get("missing") is None

    async def test_expired_sessions(self, session_factory):
        store = DatabaseSessionStore(session_factory, timedelta(seconds=-1))
        first = await store.create("a@example.com")
        await store.create("b@example.com")

        assert await store.get(first.session_id) is None
        assert await store.purge_expired() == 1


def test_build_session_store():
    assert isinstance(build_session_store(Settings(SESSION_BACKEND="memory")), MemorySessionStore)
    assert isinstance(build_session_store(Settings(SESSION_BACKEND="database")), DatabaseSessionStore)
    with pytest.raises(ValueError):
        build_session_store(Settings(SESSION_BACKEND="redis"))


def test_login_rate_limit():
    reset_login_attempts()
    for _ in range(Settings().LOGIN_MAX_ATTEMPTS):
        check_login_rate("10.0.0.1")

    with pytest.raises(HTTPException) as exc:
        check_login_rate("10.0.0.1")
    assert exc.value.status_code == 429

    check_login_rate("10.0.0.2")
    reset_login_attempts("10.0.0.1")
    check_login_rate("10.0.0.1")
    reset_login_attempts()
