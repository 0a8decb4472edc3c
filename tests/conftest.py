from __future__ import annotations

from typing import Any, Callable

import pytest


class FakeTicker:
    """Stands in for PeriodicTicker; tests call ``fire()`` instead of waiting."""

    def __init__(self, interval_seconds: float, callback: Callable[[], None], name: str = "ticker") -> None:
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.name = name
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def fire(self) -> None:
        self.callback()


class FakeTimer:
    """Stands in for threading.Timer."""

    def __init__(self, interval: float, function: Callable[..., Any], args: tuple = (), kwargs: dict | None = None) -> None:
        self.interval = interval
        self.function = function
        self.args = args
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function(*self.args, **self.kwargs)


class Recorder:
    """Factory that remembers everything it built."""

    def __init__(self, cls: type) -> None:
        self._cls = cls
        self.created: list[Any] = []

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        obj = self._cls(*args, **kwargs)
        self.created.append(obj)
        return obj

    @property
    def last(self) -> Any:
        return self.created[-1]


class FakeMonotonic:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def ticker_factory() -> Recorder:
    return Recorder(FakeTicker)


@pytest.fixture()
def timer_factory() -> Recorder:
    return Recorder(FakeTimer)


@pytest.fixture()
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()
