"""
Announcement endpoint - queue a message for display
"""

from fastapi import APIRouter, Depends, status

from api.dependencies import get_service_container
from api.schemas.announcement import AnnouncementAccepted, AnnouncementRequest
from models.announcement import Announcement
from models.events import AnnouncementReceivedEvent, EventSource
from services.service_container import ServiceContainer

router = APIRouter(prefix="/announcements", tags=["Announcements"])


@router.post(
    "",
    response_model=AnnouncementAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue an announcement",
)
async def create_announcement(
    request: AnnouncementRequest,
    services: ServiceContainer = Depends(get_service_container),
) -> AnnouncementAccepted:
    """
    Parsed exactly like the MQTT control message and queued through the
    same EventBus → CommandController → IntakeQueue path. Waits while the
    queue is full.

    **Errors:**
    - 422: unknown priority or invalid body
    """
    announcement = Announcement.from_payload(request.model_dump(exclude_none=True))
    await services.event_bus.publish(
        AnnouncementReceivedEvent(announcement, source=EventSource.HTTP_API)
    )

    return AnnouncementAccepted(
        text=announcement.text,
        priority=announcement.priority.name,
        queue_depth=services.intake.qsize(),
    )
