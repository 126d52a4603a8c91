"""
Models package - Data models for the signage display
"""

from .enums import AnnouncementPriority, DisplayPhase, ContentType, LogLevel, LogCategory
from .announcement import Announcement
from .frame import RenderedFrame

__all__ = [
    'AnnouncementPriority',
    'DisplayPhase',
    'ContentType',
    'LogLevel',
    'LogCategory',
    'Announcement',
    'RenderedFrame',
]
