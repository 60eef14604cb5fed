"""
Tests for logging setup
"""
import logging
import logging.handlers
import pytest
from unittest.mock import Mock

from logging_config import setup_logging


@pytest.fixture
def log_app(tmp_path):
    app = Mock()
    app.config = {
        'LOG_LEVEL': 'info',
        'LOG_FORMAT': '%(levelname)s %(message)s',
        'LOG_FILE': 'stitchlink.log',
        'LOG_FOLDER': str(tmp_path / 'logs'),
        'LOG_MAX_BYTES': 2048,
        'LOG_BACKUP_COUNT': 2,
    }
    return app


@pytest.mark.unit
class TestSetupLogging:
    """Tests for handler installation"""

    def test_console_and_rotating_file(self, log_app, tmp_path):
        """Test that both handlers use the configured rotation"""
        root = setup_logging(log_app)

        rotating = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(root.handlers) == 2
        assert len(rotating) == 1
        assert rotating[0].maxBytes == 2048
        assert rotating[0].backupCount == 2
        assert root.level == logging.INFO
        assert (tmp_path / 'logs').is_dir()

    def test_repeated_setup_does_not_duplicate(self, log_app):
        """Test that a second app replaces the handlers"""
        setup_logging(log_app)
        root = setup_logging(log_app)
        assert len(root.handlers) == 2

    def test_quiet_libraries(self, log_app):
        """Test that library loggers only report warnings"""
        setup_logging(log_app)
        assert logging.getLogger('werkzeug').level == logging.WARNING
        assert logging.getLogger('sqlalchemy.engine').level == logging.WARNING
