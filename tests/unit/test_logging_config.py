import logging
import logging.handlers

import pytest

from headoffice.utils.logging_config import LOGGER_NAME, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    """Test suite for logging setup."""

    def test_console_only(self):
        logger = setup_logging({'level': 'debug', 'file': ''})

        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert logger.handlers[0].level == logging.DEBUG
        assert logger.propagate is False

    def test_file_handler_creates_directory(self, tmp_path):
        log_file = tmp_path / "logs" / "headoffice.log"

        logger = setup_logging({'level': 'INFO', 'file': str(log_file)})
        logger.info("lookup finished")
        for handler in logger.handlers:
            handler.flush()

        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)
        assert "lookup finished" in log_file.read_text()

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging({'file': None})
        logger = setup_logging({'file': None})

        assert len(logger.handlers) == 1

    def test_unknown_level_defaults_to_info(self):
        logger = setup_logging({'level': 'chatty'})
        assert logger.level == logging.INFO


class TestGetLogger:
    """Test suite for logger lookup."""

    def test_root_logger(self):
        assert get_logger().name == LOGGER_NAME

    def test_child_logger(self):
        assert get_logger("registry.client").name == "headoffice.registry.client"
