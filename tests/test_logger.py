import logging

import pytest

from lightsout.utils.logger import LIBRARY_LOGGERS, PACKAGE_LOGGER, configure_logging, setup_logger


@pytest.fixture
def fresh_package_logger():
    loggers = [logging.getLogger(name) for name in (PACKAGE_LOGGER, *LIBRARY_LOGGERS)]
    saved = [(logger, logger.handlers[:], logger.level) for logger in loggers]
    for logger in loggers:
        logger.handlers.clear()
    yield
    for logger, handlers, level in saved:
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers[:] = handlers
        logger.setLevel(level)


def test_module_loggers_write_to_package_log(tmp_path, fresh_package_logger):
    configure_logging(str(tmp_path))

    setup_logger("lightsout.services.recompute").warning("recompute took too long")

    for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
        handler.flush()
    assert "lightsout.services.recompute - WARNING - recompute took too long" in \
        (tmp_path / "league_bot.log").read_text(encoding="utf-8")


def test_handlers_added_once(tmp_path, fresh_package_logger):
    configure_logging(str(tmp_path))
    configure_logging(str(tmp_path))

    assert len(logging.getLogger(PACKAGE_LOGGER).handlers) == 2
    assert len(logging.getLogger("discord").handlers) == 2


def test_empty_log_dir_logs_to_console_only(fresh_package_logger):
    configure_logging("")

    handlers = logging.getLogger(PACKAGE_LOGGER).handlers
    assert [type(h) for h in handlers] == [logging.StreamHandler]
