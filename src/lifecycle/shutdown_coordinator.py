"""
Shutdown coordinator that orchestrates graceful shutdown of all components.

Manages signal handlers, critical-task monitoring and running shutdown
handlers in priority order.
"""

import asyncio
import signal
from typing import List, Optional, Set

from lifecycle.task_registry import CRITICAL_CATEGORIES, TaskCategory, TaskRegistry
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)


class ShutdownCoordinator:
    """
    Coordinates graceful shutdown of multiple components.

    Example:
        coordinator = ShutdownCoordinator()
        coordinator.register(OrchestratorShutdownHandler(...))
        coordinator.register(DisplayShutdownHandler(...))
        coordinator.register(NetworkShutdownHandler(...))

        coordinator.setup_signal_handlers(loop)
        await coordinator.wait_for_shutdown()
        await coordinator.shutdown_all()
    """

    def __init__(
        self,
        timeout_per_handler: float = 5.0,
        total_timeout: float = 15.0,
        critical_categories: Optional[Set[TaskCategory]] = None,
    ):
        """
        Args:
            timeout_per_handler: Timeout for each individual handler (seconds)
            total_timeout: Total timeout for entire shutdown sequence (seconds)
            critical_categories: Categories whose failure triggers shutdown
                (default: TaskCategory.critical)
        """
        self._handlers: List = []
        self._shutdown_event: Optional[asyncio.Event] = None
        self._timeout_per_handler = timeout_per_handler
        self._total_timeout = total_timeout
        self._critical_categories = frozenset(critical_categories or CRITICAL_CATEGORIES)
        self.reason: Optional[str] = None

    def register(self, handler) -> None:
        """
        Register a shutdown handler.

        Handler must have:
        - shutdown_priority property (int, higher runs earlier)
        - async shutdown() method
        """
        if not hasattr(handler, "shutdown_priority"):
            raise ValueError(f"Handler {handler} missing shutdown_priority property")
        if not hasattr(handler, "shutdown"):
            raise ValueError(f"Handler {handler} missing shutdown() method")

        self._handlers.append(handler)
        log.debug(f"Registered shutdown handler: {handler.__class__.__name__}")

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Install SIGINT / SIGTERM handlers that trigger shutdown."""
        self._shutdown_event = asyncio.Event()

        def signal_handler(sig: signal.Signals) -> None:
            log.info(f"Signal {sig.name} received → triggering shutdown")
            self.trigger(sig.name)

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))

        log.info("Signal handlers installed (SIGINT, SIGTERM)")

    def trigger(self, reason: str) -> None:
        """Request shutdown programmatically."""
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()
        if self.reason is None:
            self.reason = reason
        self._shutdown_event.set()

    # === Critical task monitoring ===

    def _critical_tasks(self) -> List[asyncio.Task]:
        return [
            r.task for r in TaskRegistry.instance().active()
            if r.info.category in self._critical_categories
        ]

    def _find_critical_failure(self) -> Optional[str]:
        for record in TaskRegistry.instance().failed():
            if record.info.category in self._critical_categories:
                log.error(
                    f"Critical task failed: {record.info.description} "
                    f"(category: {record.info.category.name}) - {record.finished_with_error}"
                )
                return f"Task failure: {record.info.description}"
        return None

    async def wait_for_shutdown(self) -> None:
        """
        Wait for a shutdown signal or a critical task failure.

        A critical task that completes cleanly is not a failure (the recheck
        timer ends on its own once the weather source recovers).

        Raises:
            RuntimeError: If signal handlers weren't setup
        """
        if self._shutdown_event is None:
            raise RuntimeError("Call setup_signal_handlers() first")

        while not self._shutdown_event.is_set():
            failure = self._find_critical_failure()
            if failure:
                self.trigger(failure)
                return

            critical_tasks = self._critical_tasks()
            if not critical_tasks:
                try:
                    await asyncio.wait_for(self._shutdown_event.wait(), timeout=0.2)
                except asyncio.TimeoutError:
                    pass
                continue

            shutdown_waiter = asyncio.create_task(self._shutdown_event.wait())
            try:
                await asyncio.wait(
                    set(critical_tasks) | {shutdown_waiter},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                # Critical tasks stay alive across iterations
                if not shutdown_waiter.done():
                    shutdown_waiter.cancel()

        log.debug("Shutdown triggered", reason=self.reason)

    # === Shutdown sequence ===

    async def shutdown_all(self) -> None:
        """
        Execute graceful shutdown of all handlers in priority order.

        Each handler has its own timeout and the entire sequence has a global
        timeout. A failing handler is logged and the sequence continues.
        """
        log.info("Initiating graceful shutdown sequence", reason=self.reason or "UNKNOWN")

        sorted_handlers = sorted(self._handlers, key=lambda h: h.shutdown_priority, reverse=True)
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        for handler in sorted_handlers:
            handler_name = handler.__class__.__name__

            elapsed = loop.time() - start_time
            if elapsed > self._total_timeout:
                log.error(f"Total shutdown timeout exceeded ({elapsed:.1f}s > {self._total_timeout}s)")
                break

            try:
                log.debug(f"Shutting down {handler_name} (priority={handler.shutdown_priority})...")
                await asyncio.wait_for(handler.shutdown(), timeout=self._timeout_per_handler)
                log.debug(f"✓ {handler_name} shutdown complete")
            except asyncio.TimeoutError:
                log.error(f"{handler_name} shutdown timeout ({self._timeout_per_handler}s)")
            except asyncio.CancelledError:
                log.warn(f"{handler_name} shutdown was cancelled")
                raise
            except Exception as e:
                log.error(f"Error shutting down {handler_name}: {e}", exc_info=True)

        log.info("Shutdown sequence complete")

    def get_handler(self, handler_type: type):
        """Get a registered handler by type (testing / debugging)."""
        for handler in self._handlers:
            if isinstance(handler, handler_type):
                return handler
        return None
