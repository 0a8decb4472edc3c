from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from splitflap.app import SplitFlapApp
from splitflap.config import AppConfig, DisplayConfig, LoggingConfig, MQTTConfig, TrainConfig
from splitflap.data.broker_link import CONNECTED_SIGNAL, ConnectionStatus, LinkStatus
from splitflap.display import calibrate
from splitflap.logic.modes import Mode

COMMAND_TOPIC = "splitflap/command"


@pytest.fixture()
def config(tmp_path) -> AppConfig:
    return AppConfig(
        mqtt=MQTTConfig(
            broker_url="mqtt://localhost",
            publish_topic="splitflap/display",
            availability_topic="splitflap/availability",
            command_topic=COMMAND_TOPIC,
            state_topic="splitflap/state",
        ),
        display=DisplayConfig(width=8, calibration="A"),
        train=TrainConfig(api_token="token", poll_interval_seconds=60),
        log=LoggingConfig(level="INFO", log_dir=str(tmp_path)),
    )


@pytest.fixture()
def link() -> MagicMock:
    link = MagicMock()
    link.is_connected = True
    link.publish.return_value = True
    return link


@pytest.fixture()
def app(config: AppConfig, link: MagicMock):
    departures_client = MagicMock()
    departures_client.get_departures.return_value = []
    app = SplitFlapApp(config, link=link, departures_client=departures_client)
    yield app
    app.stop_train_updates()


def _published(link: MagicMock, topic: str) -> list:
    return [c.args[1] for c in link.publish.call_args_list if c.args[0] == topic]


def test_start_subscribes_and_connects(app: SplitFlapApp, link: MagicMock) -> None:
    app.start()

    link.subscribe.assert_called_once_with(COMMAND_TOPIC, qos=1)
    link.connect.assert_called_once()
    assert link.connect.call_args.args[1] == "splitflap/availability"
    link.add_status_listener.assert_called_once_with(app.controller.update_link_status)


def test_connected_signal_announces_online_and_state(app: SplitFlapApp, link: MagicMock) -> None:
    app._on_message(CONNECTED_SIGNAL, b"")

    link.publish.assert_any_call("splitflap/availability", "online", qos=1, retain=True)
    state = json.loads(_published(link, "splitflap/state")[-1])
    assert state["mode"] == "text"


def test_command_updates_display_and_state(app: SplitFlapApp, link: MagicMock) -> None:
    app._on_message(COMMAND_TOPIC, json.dumps({"action": "setText", "text": "HI"}).encode())

    frames = _published(link, "splitflap/display")
    assert frames == [calibrate("HI      ", "A")]
    state = json.loads(_published(link, "splitflap/state")[-1])
    assert state["text"] == "HI      "


def test_state_not_published_while_disconnected(app: SplitFlapApp, link: MagicMock) -> None:
    link.is_connected = False

    app.controller.set_text("HI")

    assert _published(link, "splitflap/state") == []


def test_link_status_reaches_state(app: SplitFlapApp) -> None:
    app.controller.update_link_status(LinkStatus(ConnectionStatus.ERROR, "refused"))

    assert app.controller.snapshot().link.error == "refused"


def test_bad_command_is_contained(app: SplitFlapApp, link: MagicMock) -> None:
    app._on_message(COMMAND_TOPIC, b"garbage")

    assert _published(link, "splitflap/display") == []


def test_train_updates_start_and_stop_poller(app: SplitFlapApp) -> None:
    app.start_train_updates("pad", "rdg")

    assert app._poller is not None
    assert app._poller.route == ("PAD", "RDG")

    app.stop_train_updates()

    assert app._poller is None


def test_train_updates_reject_bad_station(app: SplitFlapApp) -> None:
    with pytest.raises(ValueError):
        app.start_train_updates("PADDINGTON")


def test_stop_announces_offline_then_disconnects(app: SplitFlapApp, link: MagicMock) -> None:
    app.controller.set_mode(Mode.TEXT)

    app.stop()

    link.publish.assert_any_call("splitflap/availability", "offline", qos=1, retain=True)
    link.disconnect.assert_called_once()
    names = [c[0] for c in link.method_calls]
    assert names.index("disconnect") > max(i for i, n in enumerate(names) if n == "publish")


def test_stop_sequence_updates_retained_state(app: SplitFlapApp, link: MagicMock) -> None:
    scene = {"lines": [{"text": "ONE"}, {"text": "TWO"}]}
    app._on_message(COMMAND_TOPIC, json.dumps({"action": "playSequence", "scene": scene, "loop": True}).encode())
    assert json.loads(_published(link, "splitflap/state")[-1])["sequence"] == {"isPlaying": True}

    app._on_message(COMMAND_TOPIC, json.dumps({"action": "stopSequence"}).encode())

    state = json.loads(_published(link, "splitflap/state")[-1])
    assert state["sequence"] == {"isPlaying": False}
    assert state["mode"] == "sequence"
