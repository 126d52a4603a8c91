"""
Error handling for the API

Maps exceptions raised inside endpoints to the standard error envelope:
- request validation errors → 422 VALIDATION_ERROR
- malformed announcement / power payloads → 422 MALFORMED_PAYLOAD
- DomainError subclasses → their own code and status
- anything else → 500 INTERNAL_SERVER_ERROR
"""

import uuid
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.schemas.error import ErrorDetail, ErrorResponse, ValidationErrorResponse
from models.errors import MalformedPayloadError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


class DomainError(Exception):
    """Base class for errors that map to a specific HTTP status"""
    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
        status_code: int = 400
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(message)


class ServiceUnavailableError(DomainError):
    """Components not wired yet (startup) or already torn down"""
    def __init__(self, message: str = "Display services are not initialized"):
        super().__init__(
            code="SERVICE_UNAVAILABLE",
            message=message,
            status_code=503
        )


def _respond(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI app"""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        request_id = str(uuid.uuid4())
        errors = exc.errors()
        log.warn(f"Validation error on {request.url.path}: {len(errors)} error(s)", request_id=request_id)

        validation_errors = [
            {
                "field": ".".join(str(x) for x in error["loc"][1:]),  # Skip "body"
                "message": error["msg"],
                "type": error["type"],
            }
            for error in errors
        ]

        return _respond(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            ValidationErrorResponse(
                error=ErrorDetail(
                    code="VALIDATION_ERROR",
                    message="Request validation failed",
                    details={"error_count": len(errors)},
                ),
                validation_errors=validation_errors,
                request_id=request_id,
            ),
        )

    @app.exception_handler(MalformedPayloadError)
    async def malformed_payload_handler(request: Request, exc: MalformedPayloadError):
        request_id = str(uuid.uuid4())
        log.warn(f"Malformed payload on {request.url.path}: {exc.reason}", request_id=request_id)

        return _respond(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            ErrorResponse(
                error=ErrorDetail(
                    code="MALFORMED_PAYLOAD",
                    message=exc.reason,
                    details={"payload": repr(exc.payload)} if exc.payload is not None else None,
                ),
                request_id=request_id,
            ),
        )

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        request_id = str(uuid.uuid4())
        log.warn(f"Domain error ({request_id}): {exc.code} - {exc.message}")

        return _respond(
            exc.status_code,
            ErrorResponse(
                error=ErrorDetail(code=exc.code, message=exc.message, details=exc.details),
                request_id=request_id,
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        request_id = str(uuid.uuid4())
        log.error(
            f"Unexpected error ({request_id}): {type(exc).__name__}: {exc}",
            exc_info=exc,
        )

        return _respond(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorResponse(
                error=ErrorDetail(
                    code="INTERNAL_SERVER_ERROR",
                    message="An unexpected error occurred. Please try again.",
                    details={"request_id": request_id},
                ),
                request_id=request_id,
            ),
        )
