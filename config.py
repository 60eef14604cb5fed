"""
Centralized Configuration for StitchLink
Manages environment-specific settings, secrets, and the storage/auth policy.
"""
import os
from datetime import timedelta


class StoragePolicyError(RuntimeError):
    """Raised when the configured storage is not allowed in this environment"""


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # JSON forms only

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Database Settings (backend-backed storage when set)
    DATABASE_URL = os.environ.get('DATABASE_URL')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Local Storage (used when no DATABASE_URL is configured)
    DATA_FOLDER = os.environ.get('DATA_FOLDER', 'stitchlink_data')
    CUSTOMER_STORE_FILE = 'customers.json'
    USERS_FILE = 'users.json'

    # Identity Provider
    SUPABASE_URL = os.environ.get('SUPABASE_URL')
    SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY')
    AUTH_TIMEOUT = int(os.environ.get('AUTH_TIMEOUT', '10'))  # seconds
    LOCAL_AUTH_TOKEN_MAX_AGE = int(os.environ.get('LOCAL_AUTH_TOKEN_MAX_AGE', str(7 * 24 * 3600)))

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'stitchlink.log')
    LOG_FOLDER = os.environ.get('LOG_FOLDER', 'logs')
    LOG_MAX_BYTES = int(os.environ.get('LOG_MAX_BYTES', str(10 * 1024 * 1024)))
    LOG_BACKUP_COUNT = int(os.environ.get('LOG_BACKUP_COUNT', '5'))

    # Session Configuration
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://stitchlink.app').split(',')
    # Force HTTPS
    PREFERRED_URL_SCHEME = 'https'
    SESSION_COOKIE_SECURE = True


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    DATABASE_URL = None  # Use the local JSON store for tests
    SUPABASE_URL = None
    SUPABASE_ANON_KEY = None
    SECRET_KEY = 'test-secret-key-minimum-32-chars-long-for-security'
    LOG_LEVEL = 'WARNING'


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config():
    """Get configuration based on FLASK_ENV environment variable"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)


# ============================================================================
# STORAGE / AUTH POLICY
# ============================================================================

def get_app_env():
    """Current environment name (development, production, testing)"""
    return os.environ.get('FLASK_ENV', 'development').lower()


def is_production():
    return get_app_env() == 'production'


def has_database(config=None):
    """Check whether a database URL is configured"""
    if config is not None:
        return bool(config.get('DATABASE_URL'))
    return bool(os.environ.get('DATABASE_URL'))


def get_storage_mode(config=None):
    """
    Storage backend for customer data

    Returns:
        'database' when DATABASE_URL is configured, otherwise 'local'
        (single JSON slot on disk)
    """
    return 'database' if has_database(config) else 'local'


def validate_storage_config(config=None):
    """
    Enforce the storage policy

    Raises:
        StoragePolicyError: If production runs without a database
    """
    if is_production() and not has_database(config):
        raise StoragePolicyError(
            "DATABASE_URL must be configured in production. "
            "Local JSON persistence is for development only."
        )


def get_auth_mode(config=None):
    """
    Identity provider to use

    Returns:
        'supabase' when the hosted auth URL and key are set, otherwise 'local'
    """
    if config is None:
        config = os.environ
    if config.get('SUPABASE_URL') and config.get('SUPABASE_ANON_KEY'):
        return 'supabase'
    return 'local'
