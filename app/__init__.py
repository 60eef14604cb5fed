"""
App package for StitchLink.
Contains the API blueprints, registered by app_init.create_app().
"""

import logging

logger = logging.getLogger(__name__)

from app.api.pages import pages_bp
from app.api.auth_routes import auth_bp
from app.api.customers import customers_bp


def validate_storage_policy(app):
    """
    Validate storage configuration at startup.

    MUST be called during app initialization to enforce:
    - Production requires DATABASE_URL
    - Local JSON persistence is disabled in production

    Returns:
        Storage mode, 'database' or 'local'

    Raises:
        StoragePolicyError: If production mode without DATABASE_URL
    """
    from config import validate_storage_config, get_app_env, has_database, get_storage_mode

    env = get_app_env()
    db_configured = has_database(app.config)
    storage_mode = get_storage_mode(app.config)

    logger.info(f"Environment: {env.upper()}")
    logger.info(f"Database configured: {db_configured}")
    logger.info(f"Storage mode: {storage_mode}")

    validate_storage_config(app.config)

    return storage_mode


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(pages_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(customers_bp)


__all__ = ['register_blueprints', 'validate_storage_policy', 'pages_bp', 'auth_bp', 'customers_bp']
