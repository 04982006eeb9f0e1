"""
Logging Configuration
Sets up the package logger and routes Qt's own diagnostics into it.
"""
import logging
import os
import sys
from typing import Optional

PACKAGE_LOGGER = "conveyorbuilder"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LEVEL_ENV_VAR = "CONVEYORBUILDER_LOG_LEVEL"


def resolve_level(level: int) -> int:
    """`level`, unless the environment names a valid level in CONVEYORBUILDER_LOG_LEVEL."""
    override = os.environ.get(LEVEL_ENV_VAR, "").strip().upper()
    if not override:
        return level
    named = logging.getLevelName(override)
    return named if isinstance(named, int) else level


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the 'conveyorbuilder' logger namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    level = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # setup may run again when the app is restarted in-process
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(f"Logging initialized at {logging.getLevelName(level)}.")
    return logger


def install_qt_message_handler() -> None:
    """Forward qDebug/qWarning/... output to the 'conveyorbuilder.qt' logger."""
    from PySide6.QtCore import QtMsgType, qInstallMessageHandler

    qt_logger = logging.getLogger(f"{PACKAGE_LOGGER}.qt")
    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def handler(mode, context, message: str) -> None:
        qt_logger.log(levels.get(mode, logging.INFO), message)

    qInstallMessageHandler(handler)
