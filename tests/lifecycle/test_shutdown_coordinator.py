"""
Shutdown coordinator: signal / critical-task triggers and handler ordering.
"""

import asyncio
import contextlib

import pytest

from hardware.display.virtual_display import VirtualDisplay
from lifecycle.handlers import (
    AllTasksCancellationHandler,
    DisplayShutdownHandler,
    NetworkShutdownHandler,
)
from lifecycle.shutdown_coordinator import ShutdownCoordinator
from lifecycle.task_registry import TaskCategory, create_tracked_task


class RecordingHandler:
    def __init__(self, name, priority, calls, fail=False, delay=0.0):
        self.name = name
        self.shutdown_priority = priority
        self.calls = calls
        self.fail = fail
        self.delay = delay

    async def shutdown(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        self.calls.append(self.name)
        if self.fail:
            raise RuntimeError(f"{self.name} broke")


async def _forever():
    while True:
        await asyncio.sleep(0.05)


async def test_returns_on_trigger():
    coordinator = ShutdownCoordinator()
    coordinator.setup_signal_handlers(asyncio.get_running_loop())
    task = create_tracked_task(_forever(), category=TaskCategory.RENDER, description="Render loop")

    asyncio.get_running_loop().call_later(0.05, coordinator.trigger, "SIGTERM")
    try:
        await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=2.0)
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    assert coordinator.reason == "SIGTERM"


async def test_returns_on_critical_task_failure():
    coordinator = ShutdownCoordinator()
    coordinator.setup_signal_handlers(asyncio.get_running_loop())

    async def failing():
        await asyncio.sleep(0.05)
        raise RuntimeError("render loop crashed")

    task = create_tracked_task(failing(), category=TaskCategory.RENDER, description="Render loop")

    await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=2.0)

    assert coordinator.reason == "Task failure: Render loop"
    with contextlib.suppress(RuntimeError):
        await task


async def test_non_critical_failure_ignored():
    coordinator = ShutdownCoordinator()
    coordinator.setup_signal_handlers(asyncio.get_running_loop())

    async def failing():
        raise RuntimeError("presenter hiccup")

    task = create_tracked_task(failing(), category=TaskCategory.AMBIENT, description="Presenter")
    with contextlib.suppress(RuntimeError):
        await task

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=0.3)
    assert coordinator.reason is None


async def test_cleanly_finished_critical_task_is_not_failure():
    coordinator = ShutdownCoordinator()
    coordinator.setup_signal_handlers(asyncio.get_running_loop())

    async def done_quickly():
        await asyncio.sleep(0.01)

    create_tracked_task(done_quickly(), category=TaskCategory.SCHEDULER, description="Recheck timer")

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=0.3)


async def test_wait_requires_signal_setup():
    with pytest.raises(RuntimeError):
        await ShutdownCoordinator().wait_for_shutdown()


async def test_first_reason_kept():
    coordinator = ShutdownCoordinator()
    coordinator.trigger("SIGINT")
    coordinator.trigger("SIGTERM")

    assert coordinator.reason == "SIGINT"


async def test_handlers_run_by_priority_and_survive_failures():
    calls = []
    coordinator = ShutdownCoordinator()
    coordinator.register(RecordingHandler("display", 100, calls))
    coordinator.register(RecordingHandler("orchestrator", 120, calls, fail=True))
    coordinator.register(RecordingHandler("network", 80, calls))

    await coordinator.shutdown_all()

    assert calls == ["orchestrator", "display", "network"]


async def test_slow_handler_times_out():
    calls = []
    coordinator = ShutdownCoordinator(timeout_per_handler=0.05)
    coordinator.register(RecordingHandler("slow", 100, calls, delay=1.0))
    coordinator.register(RecordingHandler("next", 50, calls))

    await coordinator.shutdown_all()

    assert calls == ["next"]


def test_register_rejects_incomplete_handler():
    with pytest.raises(ValueError):
        ShutdownCoordinator().register(object())


def test_get_handler():
    coordinator = ShutdownCoordinator()
    handler = DisplayShutdownHandler(VirtualDisplay())
    coordinator.register(handler)

    assert coordinator.get_handler(DisplayShutdownHandler) is handler
    assert coordinator.get_handler(NetworkShutdownHandler) is None


async def test_display_handler_blanks_and_closes():
    display = VirtualDisplay()
    await DisplayShutdownHandler(display).shutdown()

    assert display.halt_count() == 1
    assert display.closed


async def test_network_handler_disconnects_and_closes_session():
    calls = []

    class Bridge:
        async def disconnect(self):
            calls.append("mqtt")

    class Weather:
        async def close(self):
            calls.append("weather")

    await NetworkShutdownHandler(Bridge(), Weather()).shutdown()

    assert calls == ["mqtt", "weather"]


async def test_all_tasks_cancellation():
    task = create_tracked_task(_forever(), category=TaskCategory.BACKGROUND, description="Leftover")

    await AllTasksCancellationHandler(grace_s=0.5).shutdown()

    assert task.cancelled()
