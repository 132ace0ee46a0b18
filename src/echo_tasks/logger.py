"""
Logging setup

The API server and the CLI both call ``setup_logger`` with the loaded Config.
Handlers hang off the ``src`` package logger, so module loggers created with
``logging.getLogger(__name__)`` pick them up while third-party libraries keep
their own levels. Calling it again only changes the level.
"""

import logging
from pathlib import Path

from .config import Config

PACKAGE_LOGGER = "src"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_HANDLER = "echo_tasks.file"
CONSOLE_HANDLER = "echo_tasks.console"

# HTTP clients used by the intent and transcription services log every request at INFO
CHATTY_LOGGERS = ("httpx", "httpcore", "urllib3")


def resolve_level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logger(config: Config) -> logging.Logger:
    """
    Attach the file and console handlers once and apply the configured level.

    Args:
        config: loaded application config (``log_level`` and ``log_file``)

    Returns:
        The package logger
    """
    level = resolve_level(config.log_level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    attached = {handler.get_name() for handler in logger.handlers}
    formatter = logging.Formatter(LOG_FORMAT)

    if config.log_file and FILE_HANDLER not in attached:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.set_name(FILE_HANDLER)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if CONSOLE_HANDLER not in attached:
        console = logging.StreamHandler()
        console.set_name(CONSOLE_HANDLER)
        console.setFormatter(formatter)
        logger.addHandler(console)

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logger
