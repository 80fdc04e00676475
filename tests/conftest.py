"""Shared fixtures for the TypeRight test suite."""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class FakeClock:
    """Settable clock returning seconds, for deterministic elapsed times."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTicker:
    """Records start/stop calls instead of running a timer."""

    def __init__(self) -> None:
        self.callback = None
        self.starts = 0
        self.stops = 0

    @property
    def active(self) -> bool:
        return self.callback is not None

    def start(self, callback) -> None:
        self.starts += 1
        self.callback = callback

    def stop(self) -> None:
        self.stops += 1
        self.callback = None

    def fire(self) -> None:
        if self.callback is not None:
            self.callback()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ticker() -> FakeTicker:
    return FakeTicker()


@pytest.fixture(scope="session")
def qapp():
    """A QApplication running on the offscreen platform."""
    widgets = pytest.importorskip("PySide6.QtWidgets")
    app = widgets.QApplication.instance() or widgets.QApplication([])
    yield app
