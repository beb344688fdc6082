"""Shared fixtures for standfast tests."""

from __future__ import annotations

import os
import time
from collections.abc import Iterator

import pytest

from standfast import clear_settings_cache, configure_logging
from standfast.runtime.observability import LogEntry


class CaptureRenderer:
    """Renderer that keeps entries in memory."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def render(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def events(self) -> list[str]:
        return [e.event for e in self.entries]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate every test from STANDFAST_* variables and cached settings."""
    for key in [k for k in os.environ if k.startswith("STANDFAST_")]:
        monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    monkeypatch.undo()
    clear_settings_cache()
    configure_logging(format="console", level="INFO")


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace time.sleep with a recorder of requested durations (seconds)."""
    calls: list[float] = []
    monkeypatch.setattr(time, "sleep", calls.append)
    return calls


@pytest.fixture
def capture_logs() -> CaptureRenderer:
    """Route structured logging at DEBUG level into memory."""
    renderer = CaptureRenderer()
    configure_logging(level="DEBUG", renderer=renderer)
    return renderer
