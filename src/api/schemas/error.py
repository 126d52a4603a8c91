"""
Error schemas - Pydantic models for error responses

All API errors share one envelope so clients can handle them uniformly.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorDetail(BaseModel):
    """Detailed error information"""
    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional context (offending value, valid values, etc.)"
    )
    timestamp: datetime = Field(default_factory=utc_now, description="When the error occurred")


class ErrorResponse(BaseModel):
    """API error response - standardized format"""
    error: ErrorDetail = Field(description="Error information")
    request_id: Optional[str] = Field(None, description="Request ID for logging/debugging")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": {
                "code": "MALFORMED_PAYLOAD",
                "message": "Unknown priority: '7.0'",
                "details": {"payload": "7.0"},
                "timestamp": "2026-01-12T19:30:00Z"
            },
            "request_id": "0b6f4c8e-1d2a-4c1e-9f55-3a1f3c3b2e10"
        }
    })


class ValidationErrorResponse(ErrorResponse):
    """Validation error - when the request body does not match the schema"""
    validation_errors: list[Dict[str, Any]] = Field(description="Per-field validation errors")
