"""Tests for logging setup."""

import logging

import pytest

from aptdepot.common.logger import get_logger, setup_logger


@pytest.fixture
def clean_logger():
    """Yield a unique logger name and drop its handlers afterwards."""
    name = "aptdepot-test"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_get_logger_namespaced():
    """Test component loggers live under the aptdepot namespace."""
    assert get_logger("catalog").name == "aptdepot.catalog"
    assert get_logger("aptdepot.pool").name == "aptdepot.pool"
    assert get_logger("aptdepot").name == "aptdepot"


def test_setup_console_only(clean_logger):
    """Test a console handler is added without a log directory."""
    logger = setup_logger(clean_logger, level="debug")

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)


def test_setup_with_file(clean_logger, tmp_path):
    """Test a rotating file handler writes into the log directory."""
    logger = setup_logger(clean_logger, log_dir=str(tmp_path / "logs"), console_logging=False)
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()

    assert "hello" in (tmp_path / "logs" / f"{clean_logger}.log").read_text()


def test_no_duplicate_handlers(clean_logger):
    """Test repeated setup does not stack handlers."""
    setup_logger(clean_logger)
    logger = setup_logger(clean_logger, level="WARNING")

    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING


def test_invalid_level(clean_logger):
    """Test an unknown level is rejected."""
    with pytest.raises(ValueError, match="Invalid log level"):
        setup_logger(clean_logger, level="LOUD")
