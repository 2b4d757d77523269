"""
Event registry package.

This package contains:
- Events (named-event registry with silencing)
- Config (settings from files and environment)
- Logging (structlog configuration)
"""

from event_registry.config import RegistrySettings, load_settings
from event_registry.events import EmittedEvent, EventRegistry, HandlerErrorPolicy, HandlerFailure

__version__ = "0.1.0"

__all__ = [
    "EmittedEvent",
    "EventRegistry",
    "HandlerErrorPolicy",
    "HandlerFailure",
    "RegistrySettings",
    "load_settings",
]
