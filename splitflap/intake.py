"""
Command intake: JSON commands from the broker mapped onto the mode controller.

Command format: {"action": "setMode", "mode": "clock"}. Every command returns
a response dict with a 'status' key; a bad command never raises.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from splitflap.logic.controller import ModeController
from splitflap.logic.sequencer import SceneScript

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class CommandIntake:
    """Registry of command handlers keyed by action name."""

    def __init__(
        self,
        controller: ModeController,
        start_train_updates: Callable[[str, str | None], None] | None = None,
        stop_train_updates: Callable[[], None] | None = None,
    ) -> None:
        self._controller = controller
        self._start_train_updates = start_train_updates
        self._stop_train_updates = stop_train_updates
        self._commands: dict[str, Handler] = {}

        self.register("setMode", lambda mode: {"mode": controller.set_mode(mode).value})
        self.register("setText", lambda text: {"applied": controller.set_text(str(text))})
        self.register("startStopwatch", lambda: {"applied": controller.start_stopwatch()})
        self.register("stopStopwatch", lambda: {"applied": controller.stop_stopwatch()})
        self.register("resetStopwatch", controller.reset_stopwatch)
        self.register("setTimer", self._set_timer)
        self.register("startTimer", lambda: {"applied": controller.start_timer()})
        self.register("stopTimer", lambda: {"applied": controller.stop_timer()})
        self.register("playSequence", self._play_sequence)
        self.register("stopSequence", controller.stop_sequence)
        self.register("startTrainUpdates", self._train_updates)
        self.register("stopTrainUpdates", self._stop_trains)
        self.register("getState", lambda: {"state": controller.snapshot().to_dict()})

    def register(self, name: str, handler: Handler) -> None:
        if name in self._commands:
            logger.warning("Command '%s' is being re-registered", name)
        self._commands[name] = handler

    def list_commands(self) -> list[str]:
        return list(self._commands.keys())

    def handle_payload(self, payload: bytes | str) -> dict[str, Any]:
        """Decode a raw broker payload and execute it."""
        try:
            command = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error("Invalid command payload: %s", exc)
            return {"status": "error", "message": f"Invalid JSON: {exc}"}
        if not isinstance(command, dict):
            return {"status": "error", "message": "Command must be a JSON object"}
        return self.execute(command)

    def execute(self, command: dict[str, Any]) -> dict[str, Any]:
        action = command.get("action", "")
        if not action:
            return {"status": "error", "message": "Missing 'action' field"}

        handler = self._commands.get(action)
        if handler is None:
            return {
                "status": "error",
                "message": f"Unknown command: {action}",
                "available_commands": self.list_commands(),
            }

        params = {k: v for k, v in command.items() if k != "action"}
        try:
            result = handler(**params)
        except TypeError as exc:
            logger.error("Invalid parameters for '%s': %s", action, exc)
            return {"status": "error", "message": f"Invalid parameters for '{action}': {exc}"}
        except ValueError as exc:
            logger.error("Command '%s' rejected: %s", action, exc)
            return {"status": "error", "message": str(exc)}

        if result is None:
            result = {}
        result.setdefault("status", "success")
        logger.debug("Command: %s, Result: %s", action, result["status"])
        return result

    def _set_timer(self, durationMs: Any) -> dict[str, Any]:
        try:
            duration_ms = int(durationMs)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid timer duration: {durationMs!r}") from exc
        if duration_ms < 0:
            raise ValueError("Timer duration must not be negative")
        return {"applied": self._controller.set_timer(duration_ms)}

    def _play_sequence(self, scene: dict[str, Any], loop: bool | None = None) -> None:
        self._controller.play_sequence(SceneScript.from_dict(scene, loop=loop))

    def _train_updates(self, fromCRS: str, toCRS: str | None = None) -> None:
        if self._start_train_updates is None:
            raise ValueError("Train updates are not available")
        self._start_train_updates(fromCRS, toCRS or None)

    def _stop_trains(self) -> None:
        if self._stop_train_updates is not None:
            self._stop_train_updates()


__all__ = ["CommandIntake"]
