"""Application wiring: broker link, mode controller, display output and intake."""

from __future__ import annotations

import json
import logging
import signal
import threading

from splitflap.config import AppConfig
from splitflap.data.broker_link import (
    AVAILABILITY_OFFLINE,
    AVAILABILITY_ONLINE,
    CONNECTED_SIGNAL,
    BrokerLink,
)
from splitflap.data.departures_client import DeparturesClient, validate_crs
from splitflap.data.departures_poller import DeparturePoller, PollResult
from splitflap.display.output import DisplayOutput
from splitflap.intake import CommandIntake
from splitflap.logic.controller import ModeController
from splitflap.logic.state import StateChange

logger = logging.getLogger(__name__)


class SplitFlapApp:
    """Runs one display: commands in, calibrated frames and state out."""

    def __init__(
        self,
        config: AppConfig,
        link: BrokerLink | None = None,
        departures_client: DeparturesClient | None = None,
    ) -> None:
        self._config = config
        mqtt = config.mqtt
        self.link = link or BrokerLink(
            broker_url=mqtt.broker_url,
            username=mqtt.username,
            password=mqtt.password,
            reconnect_period_seconds=mqtt.reconnect_period_seconds,
            connect_timeout_seconds=mqtt.connect_timeout_seconds,
            client_id_prefix=mqtt.client_id_prefix,
        )
        self.output = DisplayOutput(
            self.link,
            mqtt.publish_topic,
            profile=config.display.calibration,
            preview_path=config.display.preview_path,
        )
        self.controller = ModeController(config.display.width, self.output.send)
        self.intake = CommandIntake(
            self.controller,
            start_train_updates=self.start_train_updates,
            stop_train_updates=self.stop_train_updates,
        )
        self._departures_client = departures_client or DeparturesClient(config.train.api_token)
        self._poller: DeparturePoller | None = None
        self._poller_lock = threading.Lock()
        self._stop_event = threading.Event()

        self.link.add_status_listener(self.controller.update_link_status)
        self.controller.add_listener(self._on_state_change)

    def start(self) -> None:
        self._stop_event.clear()
        self.controller.activate()
        self.link.subscribe(self._config.mqtt.command_topic, qos=1)
        self.link.connect(self._on_message, self._config.mqtt.availability_topic)

    def stop(self) -> None:
        """Stop every source, announce offline, then close the link."""
        logger.info("Shutting down")
        self.stop_train_updates()
        self.controller.shutdown()
        self.link.publish(self._config.mqtt.availability_topic, AVAILABILITY_OFFLINE, qos=1, retain=True)
        self.link.disconnect()
        self._stop_event.set()

    def run(self) -> None:
        """Start and block until SIGINT or SIGTERM."""

        def _handle_signal(signum, frame) -> None:
            logger.info("Received signal %s", signum)
            self._stop_event.set()

        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

        self.start()
        try:
            while not self._stop_event.wait(timeout=1.0):
                pass
        finally:
            self.stop()

    def start_train_updates(self, from_crs: str, to_crs: str | None = None) -> None:
        from_crs = validate_crs(from_crs, "from")
        to_crs = validate_crs(to_crs, "to") if to_crs else None
        with self._poller_lock:
            if self._poller is None:
                self._poller = DeparturePoller(
                    self._departures_client,
                    from_crs,
                    to_crs,
                    num_rows=self._config.train.num_rows,
                    poll_interval_seconds=self._config.train.poll_interval_seconds,
                    on_update=self._on_departures,
                )
                self._poller.start()
            else:
                self._poller.set_route(from_crs, to_crs)
        logger.info("Train updates for %s -> %s", from_crs, to_crs or "any")

    def stop_train_updates(self) -> None:
        with self._poller_lock:
            poller = self._poller
            self._poller = None
        if poller is not None:
            poller.stop()
            logger.info("Train updates stopped")

    def publish_state(self) -> bool:
        if not self.link.is_connected:
            return False
        payload = json.dumps(self.controller.snapshot().to_dict())
        return self.link.publish(self._config.mqtt.state_topic, payload, qos=0, retain=True)

    def _on_message(self, topic: str, payload: bytes) -> None:
        if topic == CONNECTED_SIGNAL:
            self._on_connected()
            return
        if topic == self._config.mqtt.command_topic:
            result = self.intake.handle_payload(payload)
            if result.get("status") != "success":
                logger.warning("Command failed: %s", result.get("message"))
            elif "state" in result:
                self.publish_state()
            return
        logger.debug("Ignoring message on %s", topic)

    def _on_connected(self) -> None:
        self.link.publish(self._config.mqtt.availability_topic, AVAILABILITY_ONLINE, qos=1, retain=True)
        frame = self.controller.frame
        if frame.strip():
            self.output.send(frame)
        self.publish_state()

    def _on_departures(self, result: PollResult) -> None:
        self.controller.show_departures(result.from_crs, result.to_crs, result.departures, result.error)

    def _on_state_change(self, change: StateChange) -> None:
        logger.debug("State change %s: %s", change.kind, change.data)
        self.publish_state()


__all__ = ["SplitFlapApp"]
