"""
Unicorn Signage - API Layer

Local HTTP facade over the same EventBus paths the MQTT bridge uses.

Structure:
- routes/     : Endpoint handlers
- schemas/    : Pydantic request/response models
- middleware/ : Error handling
"""

from api.main import create_app

__all__ = ["create_app"]
