"""
Logging for StitchLink: console output plus a size-rotated log file
"""
import logging
import logging.handlers
from pathlib import Path

# Chatty libraries only report problems
QUIET_LOGGERS = ('werkzeug', 'urllib3', 'requests', 'sqlalchemy.engine', 'alembic')


def _rotating_file_handler(app, log_path):
    return logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=app.config.get('LOG_MAX_BYTES', 10 * 1024 * 1024),
        backupCount=app.config.get('LOG_BACKUP_COUNT', 5),
        encoding='utf-8'
    )


def setup_logging(app):
    """
    Route every module logger to the console and the rotating log file

    Handlers are replaced rather than added, so calling this again (one app
    per test) does not duplicate output.

    Args:
        app: Flask application instance

    Returns:
        The configured root logger
    """
    log_level = getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO)
    formatter = logging.Formatter(app.config['LOG_FORMAT'])

    log_dir = Path(app.config.get('LOG_FOLDER', 'logs'))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / app.config['LOG_FILE']

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            handler.close()
    root_logger.setLevel(log_level)

    for handler in (logging.StreamHandler(), _rotating_file_handler(app, log_path)):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.info(f"Logging to {log_path} at {logging.getLevelName(log_level)} level")
    return root_logger
