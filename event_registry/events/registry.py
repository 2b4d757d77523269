"""
Named-event registry for synchronous pub/sub.

Provides:
- Event creation and removal by name
- Ordered callback subscription with identity-based removal
- Synchronous emission with a structured payload
- Silencing, including silencing scoped to a single call
- Configurable handling of failing callbacks
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from event_registry.config import RegistrySettings
from event_registry.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Types & Enums
# =============================================================================


class HandlerErrorPolicy(Enum):
    """What emit does when a callback raises."""

    RAISE = "raise"
    CONTINUE = "continue"


C = TypeVar("C", bound=Callable[..., Any])


@dataclass(frozen=True)
class EmittedEvent:
    """
    Payload delivered to callbacks on emit.

    Attributes:
        type: Name of the emitted event
        args: Data passed to emit (empty dict when none was given)
    """

    type: str
    args: Any = field(default_factory=dict)


@dataclass(frozen=True)
class HandlerFailure:
    """A callback failure recorded under the continue policy."""

    event: EmittedEvent
    callback_name: str
    error: Exception

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event.type,
            "callback": self.callback_name,
            "error": str(self.error),
        }


# Callbacks receive the event name and the emitted payload
EventCallback = Callable[[str, EmittedEvent], Any]


def _callback_name(callback: Callable[..., Any]) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


def _same_callback(a: Callable[..., Any], b: Callable[..., Any]) -> bool:
    """Identity match; bound methods match on their instance and function."""
    if a is b:
        return True
    a_self, b_self = getattr(a, "__self__", None), getattr(b, "__self__", None)
    a_func, b_func = getattr(a, "__func__", None), getattr(b, "__func__", None)
    return (
        a_self is not None
        and a_self is b_self
        and a_func is not None
        and a_func is b_func
    )


# =============================================================================
# Event Registry
# =============================================================================


class EventRegistry:
    """
    Registry mapping event names to ordered callback lists.

    Each instance is independent; create one and pass it to the
    components that publish or observe events.

    Example:
        registry = EventRegistry()
        registry.create("join")

        def on_join(name, event):
            print(name, event.args)

        registry.observe("join", on_join)
        registry.emit("join", {"user": "alice"})

        registry.silence("join", reload_users, "alice")
    """

    def __init__(self, settings: RegistrySettings | None = None):
        """
        Initialize the registry.

        Args:
            settings: Registry settings (defaults apply when omitted)
        """
        self.settings = settings or RegistrySettings()
        self.error_policy = HandlerErrorPolicy(self.settings.handler_errors)
        self._events: dict[str, list[EventCallback]] = {}
        self._silenced: set[str] = set()
        self._failures: list[HandlerFailure] = []
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def create(self, name: str) -> None:
        """Ensure an event exists; no-op if it already does."""
        with self._lock:
            if name in self._events:
                return
            self._events[name] = []
        logger.debug("event_created", event_name=name)

    def remove(self, name: str) -> None:
        """
        Remove an event and all of its callbacks.

        Silencing is tracked separately and is not lifted by removal.
        """
        with self._lock:
            existed = self._events.pop(name, None) is not None
        if existed:
            logger.debug("event_removed", event_name=name)

    def has_event(self, name: str) -> bool:
        """Check whether an event is known."""
        with self._lock:
            return name in self._events

    def event_names(self) -> list[str]:
        """Get known event names in creation order."""
        with self._lock:
            return list(self._events)

    def observers(self, name: str) -> tuple[EventCallback, ...]:
        """Get a snapshot of the callbacks registered for an event."""
        with self._lock:
            return tuple(self._events.get(name, ()))

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def observe(
        self,
        name: str,
        callback: EventCallback,
        auto_create: bool = False,
    ) -> EventCallback | None:
        """
        Register a callback for an event.

        Args:
            name: Event name
            callback: Called as callback(name, event) on emit
            auto_create: Create the event if it does not exist

        Returns:
            The callback itself, or None if the event does not exist and
            auto_create is false. Keep the return value to unobserve lambdas.
        """
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")

        with self._lock:
            callbacks = self._events.get(name)
            if callbacks is None:
                if not auto_create:
                    logger.debug("event_observe_rejected", event_name=name)
                    return None
                callbacks = self._events[name] = []
            callbacks.append(callback)

        logger.debug(
            "event_observed",
            event_name=name,
            callback=_callback_name(callback),
        )
        return callback

    def on(self, name: str, auto_create: bool = True) -> Callable[[C], C]:
        """
        Register the decorated function as a callback.

        Usage:
            @registry.on("join")
            def on_join(name, event):
                ...
        """

        def decorator(fn: C) -> C:
            if self.observe(name, fn, auto_create=auto_create) is None:
                raise KeyError(f"unknown event {name!r}")
            return fn

        return decorator

    def unobserve(self, name: str, callback: EventCallback) -> bool:
        """
        Remove every registration of a callback from an event.

        Callbacks are matched by identity, so an equivalent but distinct
        function is not removed.

        Returns:
            False if the event does not exist, True otherwise
        """
        with self._lock:
            callbacks = self._events.get(name)
            if callbacks is None:
                return False
            kept = [cb for cb in callbacks if not _same_callback(cb, callback)]
            removed = len(callbacks) - len(kept)
            self._events[name] = kept

        logger.debug(
            "event_unobserved",
            event_name=name,
            callback=_callback_name(callback),
            removed=removed,
        )
        return True

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def emit(self, name: str, data: Any = None) -> None:
        """
        Emit an event to its callbacks, in registration order.

        Unknown and silenced events are dropped. Callbacks added or removed
        while dispatching take effect from the next emit.

        Args:
            name: Event name
            data: Payload exposed as event.args (defaults to an empty dict)
        """
        with self._lock:
            callbacks = self._events.get(name)
            if callbacks is None:
                logger.debug("event_emit_skipped", event_name=name, reason="unknown")
                return
            if name in self._silenced:
                logger.debug("event_emit_skipped", event_name=name, reason="silenced")
                return
            snapshot = list(callbacks)

        event = EmittedEvent(type=name, args={} if data is None else data)

        for callback in snapshot:
            try:
                callback(name, event)
            except Exception as e:
                logger.exception(
                    "event_callback_error",
                    event_name=name,
                    callback=_callback_name(callback),
                )
                if self.error_policy is HandlerErrorPolicy.RAISE:
                    raise
                self._record_failure(HandlerFailure(event, _callback_name(callback), e))

        logger.debug("event_emitted", event_name=name, callbacks=len(snapshot))

    # -------------------------------------------------------------------------
    # Silencing
    # -------------------------------------------------------------------------

    def silence(
        self,
        name: str,
        callback: Callable[..., Any] | None = None,
        *args: Any,
        **kwargs: Any,
    ) -> bool:
        """
        Silence an event so that emits are dropped.

        When a callback is given, the event is silenced only while
        callback(*args, **kwargs) runs and is unsilenced afterwards, even
        if the callback raises.

        Returns:
            Whether the event is still silenced when this returns

        Raises:
            TypeError: If arguments are given without a callback
        """
        if callback is None:
            if args or kwargs:
                raise TypeError("silence arguments given without a callback")
            self._add_silenced(name)
            return True

        with self.silenced(name):
            callback(*args, **kwargs)
        return self.is_silenced(name)

    @contextmanager
    def silenced(self, name: str) -> Iterator[EventRegistry]:
        """
        Silence an event for the duration of a with-block.

        Usage:
            with registry.silenced("join"):
                bulk_import_users()
        """
        self._add_silenced(name)
        try:
            yield self
        finally:
            self.unsilence(name)

    def unsilence(self, name: str) -> None:
        """Allow an event's callbacks to be called again."""
        with self._lock:
            if name not in self._silenced:
                return
            self._silenced.discard(name)
        logger.debug("event_unsilenced", event_name=name)

    def is_silenced(self, name: str) -> bool:
        """Check whether an event is silenced."""
        with self._lock:
            return name in self._silenced

    def _add_silenced(self, name: str):
        with self._lock:
            if name in self._silenced:
                return
            self._silenced.add(name)
        logger.debug("event_silenced", event_name=name)

    # -------------------------------------------------------------------------
    # Failures
    # -------------------------------------------------------------------------

    def _record_failure(self, failure: HandlerFailure):
        with self._lock:
            self._failures.append(failure)
            if len(self._failures) > self.settings.max_failures:
                self._failures = self._failures[-self.settings.max_failures:]

    def failures(self, limit: int = 100) -> list[HandlerFailure]:
        """Get recorded callback failures (oldest first)."""
        with self._lock:
            return self._failures[-limit:] if limit > 0 else []

    def clear_failures(self) -> int:
        """Drop recorded callback failures, returning how many there were."""
        with self._lock:
            count = len(self._failures)
            self._failures.clear()
        return count

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Get registry statistics."""
        with self._lock:
            return {
                "events": len(self._events),
                "total_callbacks": sum(len(cbs) for cbs in self._events.values()),
                "silenced": len(self._silenced),
                "failures": len(self._failures),
                "handler_errors": self.error_policy.value,
            }
