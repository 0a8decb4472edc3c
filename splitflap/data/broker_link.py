"""Single MQTT broker connection with last-will presence and fixed-period reconnect."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import threading
from typing import Any, Callable
from urllib.parse import urlparse
import uuid

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)

# Delivered to the message handler once per successful (re)connect.
CONNECTED_SIGNAL = "$splitflap/connected"

AVAILABILITY_ONLINE = "online"
AVAILABILITY_OFFLINE = "offline"

_SCHEMES = {
    "mqtt": ("tcp", False, 1883),
    "tcp": ("tcp", False, 1883),
    "mqtts": ("tcp", True, 8883),
    "ssl": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}

MessageHandler = Callable[[str, bytes], None]
StatusListener = Callable[["LinkStatus"], None]


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class LinkStatus:
    """Connection status plus the most recent error text, if any."""

    status: ConnectionStatus
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "error": self.error}


@dataclass(frozen=True)
class BrokerEndpoint:
    """Parsed broker URL."""

    host: str
    port: int
    transport: str
    use_tls: bool
    path: str


def parse_broker_url(url: str) -> BrokerEndpoint:
    """Parse ``mqtt://``, ``mqtts://``, ``ws://`` or ``wss://`` broker URLs."""
    if not url:
        raise ValueError("Broker URL is not configured")
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in _SCHEMES:
        raise ValueError(f"Unsupported broker URL scheme: {url!r}")
    if not parsed.hostname:
        raise ValueError(f"Broker URL has no host: {url!r}")
    transport, use_tls, default_port = _SCHEMES[scheme]
    try:
        port = parsed.port or default_port
    except ValueError as exc:
        raise ValueError(f"Broker URL has an invalid port: {url!r}") from exc
    return BrokerEndpoint(
        host=parsed.hostname,
        port=port,
        transport=transport,
        use_tls=use_tls,
        path=parsed.path or "/mqtt",
    )


def _default_client_factory(client_id: str, transport: str) -> mqtt.Client:
    return mqtt.Client(
        mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
        clean_session=True,
        transport=transport,
    )


class BrokerLink:
    """Owns at most one live connection to the display broker.

    Network I/O and reconnection run on the paho network thread, which retries
    at a fixed period for as long as the link is not explicitly disconnected.
    Status is only ever written here and is fanned out to status listeners.
    """

    def __init__(
        self,
        broker_url: str,
        username: str | None = None,
        password: str | None = None,
        reconnect_period_seconds: float = 5.0,
        connect_timeout_seconds: float = 5.0,
        client_id_prefix: str = "splitflap",
        client_factory: Callable[[str, str], Any] = _default_client_factory,
    ) -> None:
        self._broker_url = broker_url
        self._username = username
        self._password = password
        self._reconnect_period = max(1, int(round(reconnect_period_seconds)))
        self._connect_timeout = connect_timeout_seconds
        self._client_id = f"{client_id_prefix}_{uuid.uuid4().hex[:8]}"
        self._client_factory = client_factory

        self._lock = threading.RLock()
        self._client: Any | None = None
        self._handler: MessageHandler | None = None
        self._subscriptions: dict[str, int] = {}
        self._status = LinkStatus(ConnectionStatus.DISCONNECTED)
        self._fatal = False
        self._closing = False
        self._listeners: list[StatusListener] = []

    @property
    def status(self) -> LinkStatus:
        with self._lock:
            return self._status

    @property
    def is_connected(self) -> bool:
        return self.status.status is ConnectionStatus.CONNECTED

    def add_status_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def connect(self, message_handler: MessageHandler, availability_topic: str) -> None:
        """Start connecting; a no-op while connected or reconnecting."""
        with self._lock:
            if self._fatal:
                logger.error("Broker link is unusable: %s", self._status.error)
                return
            if self._client is not None:
                logger.info("Broker link already connected or connecting")
                return
            try:
                endpoint = parse_broker_url(self._broker_url)
            except ValueError as exc:
                logger.error("Broker configuration error: %s", exc)
                self._fatal = True
                changed = self._set_status(ConnectionStatus.ERROR, str(exc))
                endpoint = None
            else:
                self._handler = message_handler
                self._closing = False
                self._client = self._build_client(endpoint, availability_topic)
                changed = self._set_status(ConnectionStatus.CONNECTING)
            client = self._client
        self._notify(changed)
        if endpoint is None:
            return

        logger.info("Connecting to display broker %s:%s", endpoint.host, endpoint.port)
        client.connect_async(endpoint.host, endpoint.port, keepalive=60)
        client.loop_start()

    def disconnect(self) -> None:
        """Close the connection and stop retrying. The broker does not fire the will."""
        with self._lock:
            client = self._client
            if client is None:
                return
            logger.info("Disconnecting from display broker")
            self._closing = True
            self._client = None
        client.disconnect()
        client.loop_stop()
        self._transition(ConnectionStatus.DISCONNECTED)

    def subscribe(self, topic: str, qos: int = 0) -> None:
        """Subscribe now if connected, and again after every reconnect."""
        with self._lock:
            self._subscriptions[topic] = qos
            client = self._client
            connected = self._status.status is ConnectionStatus.CONNECTED
        if client is not None and connected:
            client.subscribe(topic, qos=qos)

    def publish(self, topic: str, payload: str | bytes, qos: int = 0, retain: bool = False) -> bool:
        """Fire-and-forget publish. Failures are logged, never raised."""
        with self._lock:
            client = self._client
            connected = self._status.status is ConnectionStatus.CONNECTED
        if client is None or not connected:
            logger.warning("Cannot publish to %s: not connected", topic)
            return False
        try:
            info = client.publish(topic, payload, qos=qos, retain=retain)
        except (ValueError, OSError) as exc:
            logger.error("Failed to publish to %s: %s", topic, exc)
            return False
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error("Failed to publish to %s: %s", topic, mqtt.error_string(info.rc))
            return False
        logger.debug("Published %r to %s", payload, topic)
        return True

    def _build_client(self, endpoint: BrokerEndpoint, availability_topic: str) -> Any:
        client = self._client_factory(self._client_id, endpoint.transport)
        if endpoint.transport == "websockets":
            client.ws_set_options(path=endpoint.path)
        if endpoint.use_tls:
            client.tls_set()
        if self._username:
            client.username_pw_set(self._username, self._password)
        client.will_set(availability_topic, AVAILABILITY_OFFLINE, qos=1, retain=True)
        client.reconnect_delay_set(min_delay=self._reconnect_period, max_delay=self._reconnect_period)
        client.connect_timeout = self._connect_timeout
        client.on_connect = self._on_connect
        client.on_connect_fail = self._on_connect_fail
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        return client

    # Status is written under the lock; listeners run after it is released.
    def _set_status(self, status: ConnectionStatus, error: str | None = None) -> LinkStatus | None:
        new_status = LinkStatus(status, error)
        if new_status == self._status:
            return None
        self._status = new_status
        return new_status

    def _notify(self, status: LinkStatus | None) -> None:
        if status is None:
            return
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("Link status listener failed")

    def _transition(self, status: ConnectionStatus, error: str | None = None) -> None:
        with self._lock:
            changed = self._set_status(status, error)
        self._notify(changed)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if reason_code.is_failure:
            logger.error("Broker refused connection: %s", reason_code)
            self._transition(ConnectionStatus.ERROR, str(reason_code))
            return

        with self._lock:
            if self._closing:
                return
            changed = self._set_status(ConnectionStatus.CONNECTED)
            subscriptions = dict(self._subscriptions)
            handler = self._handler
        logger.info("Connected to display broker")
        self._notify(changed)
        for topic, qos in subscriptions.items():
            client.subscribe(topic, qos=qos)
        if handler is not None:
            self._dispatch(handler, CONNECTED_SIGNAL, b"")

    def _on_connect_fail(self, client, userdata) -> None:
        logger.warning("Connection attempt failed, retrying in %ss", self._reconnect_period)
        with self._lock:
            changed = None if self._closing else self._set_status(
                ConnectionStatus.CONNECTING, "Connection attempt failed"
            )
        self._notify(changed)

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None) -> None:
        with self._lock:
            if self._closing:
                changed = self._set_status(ConnectionStatus.DISCONNECTED)
            else:
                logger.warning("Connection to display broker lost: %s", reason_code)
                changed = self._set_status(ConnectionStatus.CONNECTING, str(reason_code))
        self._notify(changed)

    def _on_message(self, client, userdata, message) -> None:
        handler = self._handler
        if handler is not None:
            self._dispatch(handler, message.topic, message.payload)

    @staticmethod
    def _dispatch(handler: MessageHandler, topic: str, payload: bytes) -> None:
        try:
            handler(topic, payload)
        except Exception:
            logger.exception("Message handler failed for topic %s", topic)


__all__ = [
    "AVAILABILITY_OFFLINE",
    "AVAILABILITY_ONLINE",
    "BrokerEndpoint",
    "BrokerLink",
    "CONNECTED_SIGNAL",
    "ConnectionStatus",
    "LinkStatus",
    "parse_broker_url",
]
