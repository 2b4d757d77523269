"""Pytest configuration and shared fixtures."""

import pytest

from event_registry.config import RegistrySettings
from event_registry.events import EventRegistry


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "property: mark test as property-based")


@pytest.fixture
def registry():
    return EventRegistry()


@pytest.fixture
def lenient_registry():
    return EventRegistry(RegistrySettings(handler_errors="continue", max_failures=3))


@pytest.fixture
def calls():
    """Recorder usable as a callback factory: calls.cb("tag")."""

    class _Calls(list):
        def cb(self, tag):
            def callback(name, event):
                self.append((tag, name, event))

            callback.__qualname__ = f"callback_{tag}"
            return callback

    return _Calls()
