"""Sends logical frames to the display: calibrate, publish, optionally preview."""

from __future__ import annotations

import logging
from typing import Protocol

from splitflap.display.calibration import calibrate
from splitflap.rendering import composer

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    def publish(self, topic: str, payload: str | bytes, qos: int = 0, retain: bool = False) -> bool: ...


class DisplayOutput:
    """Frame sink for the mode controller."""

    def __init__(
        self,
        publisher: Publisher,
        topic: str,
        profile: str | None = None,
        preview_path: str | None = None,
    ) -> None:
        self._publisher = publisher
        self._topic = topic
        self._profile = profile
        self._preview_path = preview_path

    def send(self, frame: str) -> bool:
        """Publish the calibrated form of ``frame``; the preview shows the logical form."""
        wheel_frame = calibrate(frame, self._profile)
        logger.debug("Frame %r -> wheels %r", frame, wheel_frame)
        if self._preview_path:
            try:
                composer.save_frame(frame, self._preview_path)
            except (OSError, ValueError) as exc:
                logger.warning("Could not write preview to %s: %s", self._preview_path, exc)
        return self._publisher.publish(self._topic, wheel_frame)

    __call__ = send


__all__ = ["DisplayOutput", "Publisher"]
