"""
Application Initialization Module
Initializes the Flask app with all infrastructure components
"""
import os
from flask import Flask
from config import get_config
from logging_config import setup_logging
from security import setup_security
from health_checks import register_health_checks
import logging

logger = logging.getLogger(__name__)


def create_app(overrides=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        overrides: Optional mapping applied on top of the environment's config class

    Returns:
        Configured Flask application instance

    Raises:
        StoragePolicyError: If production is missing its database or identity provider
    """
    app = Flask(__name__)

    # Load configuration
    config_class = get_config()
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("Initializing StitchLink")
    logger.info("=" * 60)
    logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    create_required_directories(app)

    # Storage policy is checked before any store is built
    from app import register_blueprints, validate_storage_policy
    storage_mode = validate_storage_policy(app)
    app.config['STORAGE_MODE'] = storage_mode

    initialize_storage(app, storage_mode)
    initialize_identity_provider(app)

    register_blueprints(app)
    register_health_checks(app)

    logger.info("Application initialization complete")
    logger.info("=" * 60)

    return app


def create_required_directories(app):
    """
    Create all required application directories

    Args:
        app: Flask application instance
    """
    directories = [
        app.config['DATA_FOLDER'],
        app.config.get('LOG_FOLDER', 'logs'),
    ]

    for directory in directories:
        os.makedirs(directory, exist_ok=True)
        logger.debug(f"Directory ensured: {directory}")


def initialize_storage(app, storage_mode):
    """
    Build the customer store for the configured storage mode

    Database mode initializes the SQLAlchemy engine and creates missing
    tables. Local mode loads the JSON-backed CustomerStore once and keeps it
    in app.extensions.
    """
    if storage_mode == 'database':
        from database.connection import init_engine, init_db
        init_engine(app.config['DATABASE_URL'])
        init_db()
        logger.info("Customer data stored in the database")
        return

    from services.customer_store import CustomerStore
    store_path = os.path.join(app.config['DATA_FOLDER'], app.config['CUSTOMER_STORE_FILE'])
    app.extensions['customer_store'] = CustomerStore(store_path)
    logger.warning(f"Customer data stored locally in {store_path} (development mode only)")


def initialize_identity_provider(app):
    """
    Create the identity provider and keep it in app.extensions

    Args:
        app: Flask application instance

    Returns:
        IdentityProvider instance
    """
    from auth import build_identity_provider

    provider = build_identity_provider(app.config)
    app.extensions['identity_provider'] = provider
    logger.info(f"Identity provider: {provider.name}")
    return provider
