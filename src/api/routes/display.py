"""
Display endpoints - status and on/off control
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.dependencies import get_service_container
from api.schemas.display import AmbientStatus, DisplayStatusResponse, PowerRequest, PowerResponse
from models.display_power import format_power_state, parse_power_state
from models.events import DisplayPowerCommandEvent, EventSource
from services.service_container import ServiceContainer
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)

router = APIRouter(prefix="/display", tags=["Display"])


@router.get("/status", response_model=DisplayStatusResponse, summary="Display status")
async def get_display_status(
    services: ServiceContainer = Depends(get_service_container),
) -> DisplayStatusResponse:
    """
    Current display state: power flag, announcement in progress, orchestrator
    phase, queue depth and the ambient cache / backoff state.
    """
    context = services.context
    entry = services.cache.entry
    orchestrator = services.orchestrator

    return DisplayStatusResponse(
        display_enabled=context.display_enabled,
        showing_announcement=context.showing_announcement,
        phase=context.phase.name,
        queue_depth=services.intake.qsize(),
        ambient=AmbientStatus(
            present=entry is not None,
            fetched_at=datetime.fromtimestamp(entry.fetched_at, tz=timezone.utc) if entry else None,
            description=entry.description if entry else None,
            error_backoff=context.ambient_error,
        ),
        presenter_running=orchestrator.presenter_running if orchestrator else False,
        announcements_shown=orchestrator.announcements_shown if orchestrator else 0,
    )


@router.post("/power", response_model=PowerResponse, summary="Switch the display on or off")
async def set_display_power(
    request: PowerRequest,
    services: ServiceContainer = Depends(get_service_container),
) -> PowerResponse:
    """
    Same path as the MQTT display topic: the command goes over the EventBus
    to the CommandController, which acknowledges it on the status topic.

    **Errors:**
    - 422: state is not ON/OFF (1/0, true/false)
    """
    enabled = parse_power_state(request.state)
    await services.event_bus.publish(DisplayPowerCommandEvent(enabled, source=EventSource.HTTP_API))

    log.info(f"Display power set via API: {format_power_state(enabled)}")
    return PowerResponse(
        display_enabled=services.context.display_enabled,
        state=format_power_state(services.context.display_enabled),
    )
