import logging

import pytest

from verify_bot.core.logging_utils import ROOT_LOGGER, configure_library_logging, get_logger, timed


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_configure_library_logging_sets_handlers():
    logger = configure_library_logging(level=logging.DEBUG)
    assert logger.name == "verify_bot"
    assert logger.level == logging.DEBUG
    assert logger.handlers


def test_configure_library_logging_accepts_level_names():
    assert configure_library_logging(level="warning").level == logging.WARNING
    assert configure_library_logging(level="nonsense").level == logging.INFO


def test_get_logger_returns_child():
    parent = configure_library_logging()
    child = get_logger("tests")
    assert child.name == "verify_bot.tests"
    assert child.parent is parent


def test_timed_logs_completion():
    handler = ListHandler()
    configure_library_logging(level=logging.DEBUG, handlers=[handler])
    logger = get_logger("timed")

    with timed(logger, "unit work"):
        pass

    assert any("unit work completed" in record.getMessage() for record in handler.records)


def test_timed_reraises_expected_as_warning():
    handler = ListHandler()
    configure_library_logging(level=logging.DEBUG, handlers=[handler])
    logger = get_logger("timed")

    with pytest.raises(KeyError):
        with timed(logger, "lookup", expected=(KeyError,)):
            raise KeyError("missing")

    record = handler.records[-1]
    assert record.levelno == logging.WARNING
    assert record.exc_info is None


def test_timed_logs_traceback_for_unexpected_errors():
    handler = ListHandler()
    configure_library_logging(level=logging.DEBUG, handlers=[handler])
    logger = get_logger("timed")

    with pytest.raises(ValueError):
        with timed(logger, "parse", expected=(KeyError,)):
            raise ValueError("bad")

    record = handler.records[-1]
    assert record.levelno == logging.ERROR
    assert record.exc_info is not None
