"""
Homesite – Live update stream.

Pages on other devices subscribe here to learn that a settings group was
saved, then re-fetch that group's document.
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from app.services.notifications import NotificationChannel, event_stream, get_notification_channel
from app.services.setting_groups import UPDATE_TOPICS

router = APIRouter(prefix="/api", tags=["events"])


def parse_topics(raw: str | None) -> list[str]:
    if not raw:
        return list(UPDATE_TOPICS)
    requested = [t.strip() for t in raw.split(",") if t.strip()]
    return [t for t in requested if t in UPDATE_TOPICS]


@router.get("/events")
async def stream_events(
    request: Request,
    topics: str | None = Query(None, description="Comma separated update topics"),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    return StreamingResponse(
        event_stream(channel, parse_topics(topics), request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
