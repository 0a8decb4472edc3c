from __future__ import annotations

import logging

from splitflap.config import LoggingConfig
from splitflap.log import LOG_FILE_NAME, setup_logging


def test_setup_logging_writes_console_and_file(tmp_path) -> None:
    logger = setup_logging(LoggingConfig(level="warning", log_dir=str(tmp_path / "logs")))

    logging.getLogger("splitflap.test").warning("flap check")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logger.name == "splitflap"
    assert logger.level == logging.WARNING
    assert "flap check" in (tmp_path / "logs" / LOG_FILE_NAME).read_text()


def test_verbose_forces_debug(tmp_path) -> None:
    logger = setup_logging(LoggingConfig(level="ERROR", log_dir=str(tmp_path)), verbose=True)

    assert logger.level == logging.DEBUG


def test_unknown_level_falls_back_to_info(tmp_path) -> None:
    logger = setup_logging(LoggingConfig(level="chatty", log_dir=str(tmp_path)))

    assert logger.level == logging.INFO
