"""Service Container - wiring-time holder of the long-lived components"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from controllers.command_controller import CommandController
from engine.display_context import DisplayContext
from engine.intake_queue import IntakeQueue
from engine.orchestrator import Orchestrator
from models.config import AppConfig
from services.ambient_cache import AmbientContentCache
from services.event_bus import EventBus
from services.refresh_scheduler import RefreshScheduler


@dataclass
class ServiceContainer:
    """
    Everything the API endpoints (and tests) need to reach, built once in
    main_asyncio.py.

    Usage:
        services = ServiceContainer(
            config=config,
            context=context,
            intake=intake,
            event_bus=event_bus,
            cache=cache,
            command_controller=controller,
            orchestrator=orchestrator,
            scheduler=scheduler,
        )
        set_service_container(services)

        @router.get("/display/status")
        async def status(services: ServiceContainer = Depends(get_service_container)):
            return services.context.snapshot()
    """

    config: AppConfig
    context: DisplayContext
    intake: IntakeQueue
    event_bus: EventBus
    cache: AmbientContentCache
    command_controller: CommandController
    orchestrator: Optional[Orchestrator] = None
    scheduler: Optional[RefreshScheduler] = None
