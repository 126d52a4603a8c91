"""
FastAPI Application Factory

Assembles the local status/control API:
- Routes (display status and power, announcements, task introspection)
- Exception handlers (standard error envelope)
- CORS for browser dashboards on the LAN

Kept separate from main_asyncio.py so tests can build the app and drive it
with TestClient after calling set_service_container().
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware.error_handler import register_exception_handlers
from api.routes import announcements, display, system
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


def create_app(
    title: str = "Unicorn Signage",
    description: str = "Local status and control API for the 16×16 announcement display",
    version: str = "1.0.0",
    docs_enabled: bool = True,
    cors_origins: Optional[list[str]] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        title: API title (shown in docs)
        description: API description
        version: API version
        docs_enabled: Enable /docs and /redoc
        cors_origins: CORS allowed origins (default: all)

    Returns:
        Configured FastAPI application ready to run
    """
    app = FastAPI(
        title=title,
        description=description,
        version=version,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    for module in (display, announcements, system):
        app.include_router(module.router, prefix="/api/v1")

    @app.get("/api/health", tags=["System"], summary="Health check")
    async def health_check():
        """Simple liveness check for monitoring"""
        return {
            "status": "healthy",
            "service": "unicorn-signage",
            "version": version,
        }

    log.debug(f"FastAPI app created: {title} v{version}")
    return app
