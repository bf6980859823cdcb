# tests/conftest.py
from typing import Callable, List

import pytest

from gptcoder.config.loader import clear_config_cache


class FakeTimerHandle:
    def __init__(self, delay_ms: int, callback: Callable[[], None]):
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Collects delayed callbacks; tests decide when the delay has elapsed."""

    def __init__(self):
        self.handles: List[FakeTimerHandle] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> FakeTimerHandle:
        handle = FakeTimerHandle(delay_ms, callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> List[FakeTimerHandle]:
        return [h for h in self.handles if not h.cancelled]

    def elapse(self) -> None:
        """Fires every callback that has not been cancelled."""
        due, self.handles = self.live, []
        for handle in due:
            handle.callback()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Points the user data directory at a temp dir and resets cached config."""
    home = tmp_path_factory.mktemp("gptcoder_home")
    monkeypatch.setenv("GPTCODER_HOME", str(home))
    clear_config_cache()
    yield home
    clear_config_cache()
