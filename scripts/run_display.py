"""Run the split-flap display controller until interrupted."""

from __future__ import annotations

import argparse
import logging

from splitflap.app import SplitFlapApp
from splitflap.config import load_config
from splitflap.log import setup_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Drive a split-flap display over MQTT.")
    parser.add_argument("--config", default="config/config.yaml", help="Path to the YAML config file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    config = load_config(args.config)
    logger = setup_logging(config.log, verbose=args.verbose)
    logger.info(
        "Starting display: width=%d, publish topic %s, calibrated=%s",
        config.display.width,
        config.mqtt.publish_topic,
        bool(config.display.calibration),
    )
    if not config.mqtt.broker_url:
        logging.getLogger(__name__).warning("No broker URL configured; set SPLITFLAP_MQTT_BROKER_URL")

    SplitFlapApp(config).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
