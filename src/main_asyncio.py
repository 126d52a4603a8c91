"""
main_asyncio.py — Application entry point for Unicorn Signage
-------------------------------------------------------------

Responsible for:
- loading configuration and assets (fatal on error)
- wiring dependencies (display, event bus, controller, orchestrator,
  scheduler, MQTT bridge, local API)
- starting the async main loop
- graceful shutdown on Ctrl+C, SIGTERM or a critical task failure
"""

import sys

# ---------------------------------------------------------------------------
# UTF-8 ENCODING FIX (important for Raspberry Pi)
# ---------------------------------------------------------------------------

# Log lines use box-drawing characters
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore
if hasattr(sys.stderr, 'reconfigure') and sys.stderr.encoding != 'UTF-8':
    sys.stderr.reconfigure(encoding='utf-8')  # type: ignore

import asyncio
from typing import Optional

from api.dependencies import set_service_container
from api.main import create_app
from controllers import CommandController
from engine.display_context import DisplayContext
from engine.frame_renderer import FrameRenderer
from engine.guarded_writer import GuardedWriter
from engine.intake_queue import IntakeQueue
from engine.orchestrator import Orchestrator
from hardware.display import create_display
from lifecycle import ShutdownCoordinator
from lifecycle.api_server_wrapper import APIServerWrapper
from lifecycle.handlers import (
    AllTasksCancellationHandler,
    APIServerShutdownHandler,
    DisplayShutdownHandler,
    NetworkShutdownHandler,
    OrchestratorShutdownHandler,
)
from lifecycle.task_registry import TaskCategory, create_tracked_task
from managers import AssetManager, ConfigManager
from models.enums import LogCategory
from models.errors import SignageError
from services import AmbientContentCache, EventBus, RefreshScheduler, WeatherService
from services.middleware import log_middleware
from services.mqtt_bridge import MqttBridge
from services.service_container import ServiceContainer
from utils.logger import configure_logger, get_logger

log = get_logger().for_category(LogCategory.SYSTEM)


# ---------------------------------------------------------------------------
# Application Entry
# ---------------------------------------------------------------------------

async def main(config_path: Optional[str] = None) -> None:
    """Main async entry point (dependency injection and event loop startup)."""

    # ========================================================================
    # 1. CONFIGURATION & ASSETS (fatal on error)
    # ========================================================================

    config = ConfigManager(config_path).load()
    configure_logger(config.logging.level, config.logging.use_colors)
    log.info("Starting Unicorn Signage...")

    assets = AssetManager(config.assets).load(font_size_px=config.timing.font_size_px)

    # ========================================================================
    # 2. DISPLAY & SHARED STATE
    # ========================================================================

    display = create_display(config.display)
    context = DisplayContext()
    intake = IntakeQueue(config.queue_capacity)
    cache = AmbientContentCache()

    event_bus = EventBus()
    event_bus.add_middleware(log_middleware)

    command_controller = CommandController(context, intake, event_bus)

    writer = GuardedWriter(context, display, disabled_mode=config.display.disabled_mode)
    renderer = FrameRenderer(assets.font, config.display, config.timing)

    # ========================================================================
    # 3. NETWORK (weather source, MQTT bridge)
    # ========================================================================

    weather_service = WeatherService(config.weather, assets.weather_icons)
    mqtt_bridge = MqttBridge(config.mqtt, event_bus)
    await mqtt_bridge.connect()

    # ========================================================================
    # 4. ORCHESTRATOR & SCHEDULER
    # ========================================================================

    scheduler = RefreshScheduler(
        context,
        cache,
        weather_service,
        heartbeat=mqtt_bridge,
        config=config.scheduler,
        event_bus=event_bus,
    )
    # Ambient presenter only starts when the first fetch worked
    await scheduler.initial_fetch()

    orchestrator = Orchestrator(
        context,
        intake,
        writer,
        renderer,
        cache,
        assets.panel_images,
        timing=config.timing,
        event_bus=event_bus,
    )
    await orchestrator.start()
    await scheduler.start()

    services = ServiceContainer(
        config=config,
        context=context,
        intake=intake,
        event_bus=event_bus,
        cache=cache,
        command_controller=command_controller,
        orchestrator=orchestrator,
        scheduler=scheduler,
    )
    set_service_container(services)

    # ========================================================================
    # 5. API SERVER
    # ========================================================================

    api_wrapper: Optional[APIServerWrapper] = None
    if config.api.enabled:
        api_wrapper = APIServerWrapper(create_app(), host=config.api.host, port=config.api.port)
        create_tracked_task(
            api_wrapper.start(),
            category=TaskCategory.API,
            description="FastAPI/Uvicorn Server",
        )
    else:
        log.info("Local API disabled")

    # ========================================================================
    # 6. SHUTDOWN COORDINATOR
    # ========================================================================

    coordinator = ShutdownCoordinator()
    coordinator.register(OrchestratorShutdownHandler(orchestrator, scheduler))
    coordinator.register(DisplayShutdownHandler(display))
    if api_wrapper is not None:
        coordinator.register(APIServerShutdownHandler(api_wrapper))
    coordinator.register(NetworkShutdownHandler(mqtt_bridge, weather_service))
    coordinator.register(AllTasksCancellationHandler())

    coordinator.setup_signal_handlers(asyncio.get_running_loop())

    log.info("Application initialized. Waiting for exit signal...")
    await coordinator.wait_for_shutdown()
    await coordinator.shutdown_all()

    set_service_container(None)
    log.info("Unicorn Signage shut down cleanly.")


def run() -> int:
    """Console script entry point (unicorn-signage)."""
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        asyncio.run(main(config_path))
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received")
    except SignageError as e:
        log.error(f"Startup failed: {e}")
        return 1
    return 0


# ---------------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    sys.exit(run())
