"""Logging setup tests"""

import logging

import pytest

from src.echo_tasks.config import Config
from src.echo_tasks.logger import CONSOLE_HANDLER, FILE_HANDLER, PACKAGE_LOGGER, resolve_level, setup_logger


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    saved_handlers, saved_level = list(logger.handlers), logger.level
    logger.handlers = []
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


def test_handlers_are_attached_once(tmp_path, package_logger):
    log_file = tmp_path / "logs" / "echo_tasks.log"
    config = Config(log_level="DEBUG", log_file=str(log_file))

    setup_logger(config)
    config.log_level = "WARNING"
    logger = setup_logger(config)

    assert sorted(handler.get_name() for handler in logger.handlers) == [CONSOLE_HANDLER, FILE_HANDLER]
    assert logger.level == logging.WARNING
    assert log_file.parent.is_dir()


def test_module_loggers_write_to_file(tmp_path, package_logger):
    log_file = tmp_path / "echo_tasks.log"
    setup_logger(Config(log_level="INFO", log_file=str(log_file)))

    logging.getLogger("src.todo.store").info("created task-1")
    for handler in package_logger.handlers:
        handler.flush()

    assert "src.todo.store - INFO - created task-1" in log_file.read_text(encoding="utf-8")


def test_http_client_loggers_are_quieted(tmp_path, package_logger):
    setup_logger(Config(log_level="DEBUG", log_file=str(tmp_path / "echo_tasks.log")))
    assert logging.getLogger("httpx").level == logging.WARNING


@pytest.mark.parametrize("name, expected", [("debug", logging.DEBUG), ("ERROR", logging.ERROR), ("loud", logging.INFO)])
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected
