"""
Named-event registry module.

Provides a synchronous pub/sub registry keyed by event name.
"""

from event_registry.events.registry import (
    EmittedEvent,
    EventCallback,
    EventRegistry,
    HandlerErrorPolicy,
    HandlerFailure,
)

__all__ = [
    "EmittedEvent",
    "EventCallback",
    "EventRegistry",
    "HandlerErrorPolicy",
    "HandlerFailure",
]
