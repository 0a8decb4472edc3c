"""Scene playback: an ordered list of timed text lines, optionally looping."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_LINE_DURATION_MS = 1000
MIN_LINE_DURATION_MS = 100


@dataclass(frozen=True)
class SceneLine:
    text: str
    duration_ms: int = DEFAULT_LINE_DURATION_MS
    id: str | None = None


@dataclass(frozen=True)
class SceneScript:
    lines: tuple[SceneLine, ...]
    loop: bool = False
    name: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], loop: bool | None = None) -> SceneScript:
        """Build a script from the JSON shape the scene editor sends.

        ``loop`` overrides the scene's own flag when given.
        """
        if not isinstance(data, dict):
            raise ValueError("Scene must be a mapping")
        raw_lines = data.get("lines", [])
        if not isinstance(raw_lines, list):
            raise ValueError("Scene 'lines' must be a list")

        lines = []
        for index, raw in enumerate(raw_lines):
            if not isinstance(raw, dict) or not isinstance(raw.get("text"), str):
                raise ValueError(f"Scene line {index} must be a mapping with a 'text' string")
            lines.append(
                SceneLine(
                    text=raw["text"],
                    duration_ms=_parse_duration(raw.get("durationMs", DEFAULT_LINE_DURATION_MS)),
                    id=raw.get("id"),
                )
            )
        return cls(
            lines=tuple(lines),
            loop=bool(data.get("loop", False)) if loop is None else bool(loop),
            name=data.get("name"),
        )


def _parse_duration(value: Any) -> int:
    if isinstance(value, bool):
        return MIN_LINE_DURATION_MS
    try:
        duration = int(value)
    except (TypeError, ValueError):
        return MIN_LINE_DURATION_MS
    return duration if duration > 0 else MIN_LINE_DURATION_MS


class SceneSequencer:
    """Plays at most one script at a time.

    Each line's text is emitted when the line starts and a one-shot timer is
    armed for its duration. A stale timer (from a stopped or replaced script)
    is recognised by its generation and ignored.
    """

    def __init__(
        self,
        lock: threading.RLock,
        emit: Callable[[str], bool],
        on_stopped: Callable[[], None],
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self._lock = lock
        self._emit = emit
        self._on_stopped = on_stopped
        self._timer_factory = timer_factory
        self._timer: threading.Timer | None = None
        self._script: SceneScript | None = None
        self._cursor = 0
        self._playing = False
        self._generation = 0

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def cursor(self) -> int:
        return self._cursor

    def start(self) -> None:
        """Entering sequence mode shows nothing until a script is played."""
        self.stop()

    def play(self, script: SceneScript) -> None:
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            self._script = script
            self._cursor = 0
            if not script.lines:
                logger.info("Empty scene, nothing to play")
                self._playing = False
                self._on_stopped()
                return
            logger.info("Playing scene %s (%d lines, loop=%s)", script.name or "", len(script.lines), script.loop)
            self._playing = True
            self._show_current(self._generation)

    def stop(self) -> None:
        with self._lock:
            if not self._playing:
                return
            self._playing = False
            self._generation += 1
            self._cancel_timer()
            logger.info("Scene playback stopped")

    def _show_current(self, generation: int) -> None:
        line = self._script.lines[self._cursor]
        self._emit(line.text)
        self._timer = self._timer_factory(line.duration_ms / 1000.0, self._advance, args=(generation,))
        self._timer.daemon = True
        self._timer.start()

    def _advance(self, generation: int) -> None:
        with self._lock:
            if not self._playing or generation != self._generation:
                return
            self._timer = None
            self._cursor += 1
            if self._cursor >= len(self._script.lines):
                if not self._script.loop:
                    self._playing = False
                    logger.info("Scene finished")
                    self._on_stopped()
                    return
                self._cursor = 0
            self._show_current(generation)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


__all__ = ["SceneLine", "SceneScript", "SceneSequencer"]
