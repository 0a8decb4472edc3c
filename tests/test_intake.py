from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from splitflap.intake import CommandIntake
from splitflap.logic.controller import ModeController
from splitflap.logic.modes import Mode


@pytest.fixture()
def controller(ticker_factory, timer_factory, monotonic) -> ModeController:
    controller = ModeController(
        8, MagicMock(), monotonic=monotonic, ticker_factory=ticker_factory, timer_factory=timer_factory
    )
    controller.activate()
    return controller


@pytest.fixture()
def trains() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def intake(controller: ModeController, trains: MagicMock) -> CommandIntake:
    return CommandIntake(controller, start_train_updates=trains.start, stop_train_updates=trains.stop)


def _send(intake: CommandIntake, command: dict) -> dict:
    return intake.handle_payload(json.dumps(command).encode("utf-8"))


def test_set_mode_and_text(intake: CommandIntake, controller: ModeController) -> None:
    result = _send(intake, {"action": "setText", "text": "HELLO"})

    assert result == {"status": "success", "applied": True}
    assert controller.frame == "HELLO   "

    result = _send(intake, {"action": "setMode", "mode": "stopwatch"})

    assert result == {"status": "success", "mode": "stopwatch"}
    assert controller.mode is Mode.STOPWATCH


def test_stopwatch_commands(intake: CommandIntake, controller: ModeController) -> None:
    _send(intake, {"action": "setMode", "mode": "stopwatch"})

    assert _send(intake, {"action": "startStopwatch"})["applied"] is True
    assert controller.snapshot().stopwatch.running
    assert _send(intake, {"action": "stopStopwatch"})["applied"] is True
    assert _send(intake, {"action": "resetStopwatch"}) == {"status": "success"}


def test_timer_commands(intake: CommandIntake, controller: ModeController) -> None:
    _send(intake, {"action": "setMode", "mode": "timer"})

    assert _send(intake, {"action": "setTimer", "durationMs": 90_000})["applied"] is True
    assert _send(intake, {"action": "startTimer"})["applied"] is True
    assert controller.snapshot().timer.target_ms == 90_000
    assert _send(intake, {"action": "stopTimer"})["applied"] is True


@pytest.mark.parametrize("duration", ["later", -5, None])
def test_set_timer_rejects_bad_duration(intake: CommandIntake, duration) -> None:
    result = _send(intake, {"action": "setTimer", "durationMs": duration})

    assert result["status"] == "error"


def test_play_and_stop_sequence(intake: CommandIntake, controller: ModeController) -> None:
    scene = {"name": "hi", "lines": [{"text": "ONE"}, {"text": "TWO"}]}

    assert _send(intake, {"action": "playSequence", "scene": scene, "loop": True})["status"] == "success"
    assert controller.mode is Mode.SEQUENCE
    assert controller.snapshot().sequence_playing

    _send(intake, {"action": "stopSequence"})

    assert not controller.snapshot().sequence_playing


def test_train_update_commands(intake: CommandIntake, trains: MagicMock) -> None:
    _send(intake, {"action": "startTrainUpdates", "fromCRS": "PAD", "toCRS": "RDG"})
    _send(intake, {"action": "startTrainUpdates", "fromCRS": "KGX", "toCRS": ""})
    _send(intake, {"action": "stopTrainUpdates"})

    trains.start.assert_any_call("PAD", "RDG")
    trains.start.assert_any_call("KGX", None)
    trains.stop.assert_called_once()


def test_train_updates_unavailable_without_hook(controller: ModeController) -> None:
    intake = CommandIntake(controller)

    result = intake.execute({"action": "startTrainUpdates", "fromCRS": "PAD"})

    assert result["status"] == "error"


def test_get_state_returns_snapshot(intake: CommandIntake) -> None:
    result = _send(intake, {"action": "getState"})

    assert result["status"] == "success"
    assert result["state"]["mode"] == "text"


def test_invalid_json_is_reported(intake: CommandIntake) -> None:
    result = intake.handle_payload(b"{not json")

    assert result["status"] == "error"
    assert "Invalid JSON" in result["message"]


def test_non_object_payload_is_reported(intake: CommandIntake) -> None:
    assert intake.handle_payload(b"[1, 2]")["status"] == "error"


def test_missing_and_unknown_actions(intake: CommandIntake) -> None:
    assert intake.execute({})["message"] == "Missing 'action' field"

    result = intake.execute({"action": "launch"})

    assert result["status"] == "error"
    assert "setMode" in result["available_commands"]


def test_bad_parameters_are_reported(intake: CommandIntake) -> None:
    assert intake.execute({"action": "setMode"})["status"] == "error"
    assert intake.execute({"action": "setMode", "mode": "disco"})["status"] == "error"
    assert intake.execute({"action": "startTimer", "extra": 1})["status"] == "error"


def test_rejections_are_logged_with_arguments(intake: CommandIntake, caplog) -> None:
    with caplog.at_level("ERROR", logger="splitflap.intake"):
        intake.execute({"action": "setMode", "mode": "disco"})

    record = caplog.records[-1]
    assert record.msg == "Command '%s' rejected: %s"
    assert record.args[0] == "setMode"
    assert "disco" in record.getMessage()
