"""Configuration loader for the split-flap display controller."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Any

from dotenv import load_dotenv
import yaml

DEFAULT_RECONNECT_PERIOD_SECONDS = 5.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 5.0
DEFAULT_TRAIN_POLL_INTERVAL_SECONDS = 60
DEFAULT_TRAIN_NUM_ROWS = 10


@dataclass(frozen=True)
class MQTTConfig:
    """Broker connection and topic configuration."""

    broker_url: str
    publish_topic: str
    availability_topic: str
    command_topic: str
    state_topic: str
    username: str | None = None
    password: str | None = None
    reconnect_period_seconds: float = DEFAULT_RECONNECT_PERIOD_SECONDS
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    client_id_prefix: str = "splitflap"


@dataclass(frozen=True)
class DisplayConfig:
    """Physical display configuration."""

    width: int
    calibration: str | None = None
    preview_path: str | None = None


@dataclass(frozen=True)
class TrainConfig:
    """Departure board lookup configuration."""

    api_token: str
    poll_interval_seconds: int = DEFAULT_TRAIN_POLL_INTERVAL_SECONDS
    num_rows: int = DEFAULT_TRAIN_NUM_ROWS


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str
    log_dir: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    mqtt: MQTTConfig
    display: DisplayConfig
    train: TrainConfig
    log: LoggingConfig


def _require_key(mapping: dict[str, Any], key: str, context: str) -> Any:
    if key not in mapping:
        raise ValueError(f"Missing required key '{key}' in {context} config")
    return mapping[key]


def _require_section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = _require_key(data, key, key)
    if not isinstance(section, dict):
        raise ValueError(f"'{key}' config must be a mapping")
    return section


def _env(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def load_config(path: str = "config/config.yaml") -> AppConfig:
    """Load application configuration from a YAML file and the environment."""
    load_dotenv()
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at the top level")

    mqtt_section = _require_section(data, "mqtt")
    display_section = _require_section(data, "display")
    logging_section = _require_section(data, "logging")
    train_section = data.get("train") or {}
    if not isinstance(train_section, dict):
        raise ValueError("'train' config must be a mapping")

    # An absent broker URL is reported by the broker link, not here.
    broker_url = _env("SPLITFLAP_MQTT_BROKER_URL") or str(mqtt_section.get("broker_url") or "")

    mqtt = MQTTConfig(
        broker_url=broker_url,
        publish_topic=_require_key(mqtt_section, "publish_topic", "mqtt"),
        availability_topic=_require_key(mqtt_section, "availability_topic", "mqtt"),
        command_topic=_require_key(mqtt_section, "command_topic", "mqtt"),
        state_topic=_require_key(mqtt_section, "state_topic", "mqtt"),
        username=_env("SPLITFLAP_MQTT_USERNAME"),
        password=_env("SPLITFLAP_MQTT_PASSWORD"),
        reconnect_period_seconds=float(
            mqtt_section.get("reconnect_period_seconds", DEFAULT_RECONNECT_PERIOD_SECONDS)
        ),
        connect_timeout_seconds=float(
            mqtt_section.get("connect_timeout_seconds", DEFAULT_CONNECT_TIMEOUT_SECONDS)
        ),
        client_id_prefix=str(mqtt_section.get("client_id_prefix", "splitflap")),
    )

    width = _require_key(display_section, "width", "display")
    if not isinstance(width, int) or width <= 0:
        raise ValueError(f"'display.width' must be a positive integer, got {width!r}")

    calibration = _env("SPLITFLAP_CALIBRATION") or display_section.get("calibration")
    display = DisplayConfig(
        width=width,
        calibration=str(calibration) if calibration else None,
        preview_path=display_section.get("preview_path"),
    )

    train = TrainConfig(
        api_token=_env("NRE_API_TOKEN") or "",
        poll_interval_seconds=int(
            train_section.get("poll_interval_seconds", DEFAULT_TRAIN_POLL_INTERVAL_SECONDS)
        ),
        num_rows=int(train_section.get("num_rows", DEFAULT_TRAIN_NUM_ROWS)),
    )

    logging = LoggingConfig(
        level=_require_key(logging_section, "level", "logging"),
        log_dir=_require_key(logging_section, "log_dir", "logging"),
    )

    return AppConfig(mqtt=mqtt, display=display, train=train, log=logging)
