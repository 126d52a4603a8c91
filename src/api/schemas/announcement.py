"""Announcement request/response schemas"""

from typing import Optional, Union

from pydantic import BaseModel, Field


class AnnouncementRequest(BaseModel):
    """Same shape as the MQTT control message"""
    msg: str = Field(description="Text to scroll across the panel")
    priority: Optional[Union[str, float]] = Field(
        None,
        description='"0.0" (none), "1.0" (info), "2.0" (warning) or "3.0" (critical)',
        examples=["3.0"],
    )


class AnnouncementAccepted(BaseModel):
    status: str = "queued"
    text: str
    priority: str
    queue_depth: int
