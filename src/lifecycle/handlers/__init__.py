from .all_tasks_cancellation_handler import AllTasksCancellationHandler
from .api_server_shutdown_handler import APIServerShutdownHandler
from .display_shutdown_handler import DisplayShutdownHandler
from .network_shutdown_handler import NetworkShutdownHandler
from .orchestrator_shutdown_handler import OrchestratorShutdownHandler

__all__ = [
    "AllTasksCancellationHandler",
    "APIServerShutdownHandler",
    "DisplayShutdownHandler",
    "NetworkShutdownHandler",
    "OrchestratorShutdownHandler",
]
