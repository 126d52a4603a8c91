"""Display status and power schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PowerRequest(BaseModel):
    state: str = Field(description="ON or OFF (1/0 and true/false are accepted too)", examples=["OFF"])


class PowerResponse(BaseModel):
    display_enabled: bool
    state: str


class AmbientStatus(BaseModel):
    present: bool
    fetched_at: Optional[datetime] = None
    description: Optional[str] = None
    error_backoff: bool


class DisplayStatusResponse(BaseModel):
    display_enabled: bool
    showing_announcement: bool
    phase: str
    queue_depth: int
    ambient: AmbientStatus
    presenter_running: bool
    announcements_shown: int
