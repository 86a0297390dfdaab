"""
Homesite - Main FastAPI application entry point.

Serves the public marketing pages, the session-guarded admin page, the
settings / auth / email APIs and the uploaded media assets.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from app.config import get_settings
from app.errors import register_error_handlers
from app.exceptions import StorageError
from app.middleware.auth import AdminSession, build_session_store, get_current_session
from app.routers import auth, email, events, settings as settings_routes
from app.services.config_store import ConfigStore, JsonFileConfigStore, get_config_store
from app.services.notifications import LocalNotificationChannel
from app.services.setting_groups import HERO
from app.services.uploads import UploadRelay, get_upload_relay

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown events."""
    logger.info("Homesite starting on port %s...", settings.PORT)
    if settings.SESSION_BACKEND == "database":
        from app.database import init_db
        await init_db()
        logger.info("Session table initialized")
    yield
    logger.info("Homesite shutting down")


app = FastAPI(
    title="Homesite - marketing site and admin panel",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.state.config_store = JsonFileConfigStore(settings.CONFIG_DIR)
app.state.upload_relay = UploadRelay(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
app.state.notifications = LocalNotificationChannel()
app.state.session_store = build_session_store(settings)
app.state.public_dir = settings.PUBLIC_DIR

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(settings_routes.router)
app.include_router(auth.router)
app.include_router(email.router)
app.include_router(events.router)

app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=str(settings.UPLOAD_DIR), check_dir=False),
    name="uploads",
)


@app.get("/health")
async def health():
    return {"status": "ok", "version": settings.APP_VERSION}


# ── Pages ────────────────────────────────────────────────────

@app.get("/admin.html")
async def admin_page(request: Request, session: AdminSession | None = Depends(get_current_session)):
    """The admin panel, only for an authenticated session."""
    if session is None:
        logger.info("Admin page access denied, redirecting to portal")
        return RedirectResponse("/portal.html", status_code=302)
    logger.info("Admin page access granted for %s", session.email)
    return FileResponse(str(Path(request.app.state.public_dir) / "admin.html"))


@app.get("/favicon.ico")
async def favicon(
    store: ConfigStore = Depends(get_config_store),
    relay: UploadRelay = Depends(get_upload_relay),
):
    """Use the uploaded hero logo as the site icon."""
    try:
        logo_url = store.read(HERO.key).get("logoUrl")
    except StorageError:
        logo_url = None
    path = relay.resolve(logo_url) if isinstance(logo_url, str) else None
    if path is None:
        raise HTTPException(404, "Not found")
    return FileResponse(str(path))


@app.get("/{full_path:path}")
async def serve_site(full_path: str, request: Request):
    """Serve files from the public directory, or fall back to the homepage."""
    public_dir = Path(request.app.state.public_dir).resolve()

    if full_path:
        candidate = (public_dir / full_path).resolve()
        if candidate.is_relative_to(public_dir) and candidate.is_file() and candidate.name != "admin.html":
            return FileResponse(str(candidate))

    if full_path.startswith("api/") or Path(full_path).suffix:
        raise HTTPException(404, "Not found")

    return FileResponse(str(public_dir / "homepage.html"))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.DEBUG)
