"""
API Dependencies - service container access for FastAPI endpoints

Pattern:
1. main_asyncio.py builds the ServiceContainer during startup
2. main_asyncio.py calls set_service_container()
3. endpoints receive it with Depends(get_service_container)
"""

from typing import Optional

from api.middleware.error_handler import ServiceUnavailableError
from services.service_container import ServiceContainer


# Set by main_asyncio.py (and by tests)
_service_container: Optional[ServiceContainer] = None


def set_service_container(services: Optional[ServiceContainer]) -> None:
    """Store (or clear, with None) the container the endpoints use."""
    global _service_container
    _service_container = services


async def get_service_container() -> ServiceContainer:
    """
    FastAPI dependency for accessing the service container.

    Raises:
        ServiceUnavailableError: 503 while the display services are not wired
    """
    if _service_container is None:
        raise ServiceUnavailableError()
    return _service_container
