import os
import tempfile
from datetime import timedelta
from pathlib import Path

# ============================================================================
# TEST RUNTIME DIRECTORIES
# ============================================================================
# Settings are read once at import, so point every path at a throwaway
# directory before the app is imported. Tests never touch ./config or
# ./public of the checkout.
# ============================================================================
_RUNTIME_DIR = Path(tempfile.mkdtemp(prefix="homesite-tests-"))
os.environ.setdefault("CONFIG_DIR", str(_RUNTIME_DIR / "config"))
os.environ.setdefault("PUBLIC_DIR", str(_RUNTIME_DIR / "public"))
os.environ.setdefault("UPLOAD_DIR", str(_RUNTIME_DIR / "public" / "uploads"))
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["SESSION_BACKEND"] = "memory"
for _name in ("EMAIL_SENDER", "EMAIL_APP_PASSWORD", "EMAIL_RECIPIENT", "EMAIL_SMTP_PORT"):
    os.environ.pop(_name, None)

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.config import get_settings  # noqa: E402
from app.main import app  # noqa: E402
from app.middleware.auth import MemorySessionStore, hash_password  # noqa: E402
from app.middleware.rate_limit import reset_login_attempts  # noqa: E402
from app.services.config_store import JsonFileConfigStore  # noqa: E402
from app.services.notifications import LocalNotificationChannel  # noqa: E402
from app.services.setting_groups import AUTH  # noqa: E402
from app.services.uploads import UploadRelay  # noqa: E402

ADMIN_EMAIL = "owner@example.com"
ADMIN_PASSWORD = "correct horse battery"


@pytest.fixture
def config_store(tmp_path):
    return JsonFileConfigStore(tmp_path / "config")


@pytest.fixture
def upload_relay():
    # Same directory the /uploads static mount serves from
    settings = get_settings()
    return UploadRelay(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)


@pytest.fixture
def notifications():
    return LocalNotificationChannel()


@pytest.fixture
def session_store():
    return MemorySessionStore(timedelta(hours=1))


@pytest.fixture
def public_dir(tmp_path):
    root = tmp_path / "public"
    (root / "css").mkdir(parents=True)
    (root / "homepage.html").write_text("<h1>homepage</h1>", encoding="utf-8")
    (root / "portal.html").write_text("<h1>portal</h1>", encoding="utf-8")
    (root / "admin.html").write_text("<h1>admin</h1>", encoding="utf-8")
    (root / "css" / "site.css").write_text("body { margin: 0; }", encoding="utf-8")
    return root


@pytest.fixture
def admin_credentials(config_store):
    config_store.write(AUTH.key, {"email": ADMIN_EMAIL, "password_hash": hash_password(ADMIN_PASSWORD)})
    return ADMIN_EMAIL, ADMIN_PASSWORD


@pytest.fixture
async def client(config_store, upload_relay, notifications, session_store, public_dir):
    """Async test client wired to per-test stores."""
    previous = dict(app.state._state)
    app.state.config_store = config_store
    app.state.upload_relay = upload_relay
    app.state.notifications = notifications
    app.state.session_store = session_store
    app.state.public_dir = public_dir
    reset_login_attempts()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.state._state.clear()
    app.state._state.update(previous)


@pytest.fixture
async def admin_client(client, admin_credentials):
    """Client holding an authenticated admin session cookie."""
    email, password = admin_credentials
    response = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return client
