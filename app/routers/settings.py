"""
Homesite – Site settings routes (hero, services, about me, testimonials,
video gallery, social media, phone).

Reads are public so the homepage can render; saves require an admin
session and publish the group's update topic once the document is written.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from app.exceptions import StorageError
from app.middleware.auth import AdminSession, require_admin
from app.services.config_store import ConfigStore, get_config_store
from app.services.merge import MergeEndpoint
from app.services.notifications import NotificationChannel, get_notification_channel
from app.services.setting_groups import ABOUT_ME, HERO, REPLACE_ROUTES, SERVICES, SettingGroup
from app.services.uploads import UploadRelay, get_upload_relay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["settings"])


def get_merge_endpoint(
    store: ConfigStore = Depends(get_config_store),
    relay: UploadRelay = Depends(get_upload_relay),
) -> MergeEndpoint:
    return MergeEndpoint(store, relay)


def _read(store: ConfigStore, group: SettingGroup) -> dict:
    try:
        return store.read(group.key)
    except StorageError:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to read {group.label}.")


def _announce(channel: NotificationChannel, group: SettingGroup):
    if group.topic:
        channel.publish(group.topic)


async def _save_multipart(
    group: SettingGroup,
    request: Request,
    merger: MergeEndpoint,
    channel: NotificationChannel,
) -> dict:
    form = await request.form()
    try:
        files = merger.relay.collect(form, group.schema.file_fields)
        submitted = {
            name: form.get(name)
            for name in group.schema.text_fields
            if isinstance(form.get(name), str)
        }
        # file copies and the JSON write block, keep them off the event loop
        document = await run_in_threadpool(merger.save, group, submitted, files)
    except StorageError:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to save {group.label}.")
    finally:
        await form.close()

    _announce(channel, group)
    return {"success": True, "settings": document}


# ── Hero section ─────────────────────────────────────────────

@router.get("/hero/settings")
async def get_hero_settings(store: ConfigStore = Depends(get_config_store)):
    return _read(store, HERO)


@router.post("/hero/settings")
async def save_hero_settings(
    request: Request,
    admin: AdminSession = Depends(require_admin),
    merger: MergeEndpoint = Depends(get_merge_endpoint),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    """Upload a new hero video and/or logo; the one not sent is kept."""
    return await _save_multipart(HERO, request, merger, channel)


# ── Services ─────────────────────────────────────────────────

@router.get("/services")
async def get_services(store: ConfigStore = Depends(get_config_store)):
    return _read(store, SERVICES)


@router.post("/services")
async def save_services(
    request: Request,
    admin: AdminSession = Depends(require_admin),
    merger: MergeEndpoint = Depends(get_merge_endpoint),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    return await _save_multipart(SERVICES, request, merger, channel)


# ── About me ─────────────────────────────────────────────────

@router.get("/about-me")
async def get_about_me(store: ConfigStore = Depends(get_config_store)):
    return _read(store, ABOUT_ME)


@router.post("/about-me")
async def save_about_me(
    request: Request,
    admin: AdminSession = Depends(require_admin),
    merger: MergeEndpoint = Depends(get_merge_endpoint),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    return await _save_multipart(ABOUT_ME, request, merger, channel)


# ── Groups replaced wholesale ────────────────────────────────

def _add_replace_endpoints(path: str, group: SettingGroup):
    async def read_settings(store: ConfigStore = Depends(get_config_store)):
        return _read(store, group)

    async def write_settings(
        body: dict[str, Any] = Body(...),
        admin: AdminSession = Depends(require_admin),
        merger: MergeEndpoint = Depends(get_merge_endpoint),
        channel: NotificationChannel = Depends(get_notification_channel),
    ):
        try:
            document = await run_in_threadpool(merger.replace, group, body)
        except StorageError:
            raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to save {group.label}.")
        _announce(channel, group)
        return {"success": True, "settings": document}

    name = path.replace("/", "_").replace("-", "_")
    router.add_api_route(f"/{path}", read_settings, methods=["GET"], name=f"get_{name}")
    router.add_api_route(f"/{path}", write_settings, methods=["POST"], name=f"save_{name}")


for _path, _group in REPLACE_ROUTES.items():
    _add_replace_endpoints(_path, _group)
