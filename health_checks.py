"""
Health Check & Monitoring Endpoints
Provides endpoints for deployment health checks and monitoring
"""
import os
import sys
import time
import psutil
from datetime import datetime, timezone
from typing import Dict, Any
from flask import Blueprint, current_app, jsonify
import logging

from services.timestamps import utc_now

logger = logging.getLogger(__name__)

# Create Blueprint for health check routes
health_bp = Blueprint('health', __name__)

SERVICE_NAME = 'stitchlink'
SERVICE_VERSION = '1.0.0'

# Track application start time
START_TIME = time.time()


def get_system_metrics() -> Dict[str, Any]:
    """
    Get basic process metrics

    Returns:
        Dictionary of system metrics, empty when psutil cannot read them
    """
    try:
        process = psutil.Process()

        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': round(process.memory_info().rss / 1024 / 1024, 2),
            'memory_percent': round(process.memory_percent(), 2),
            'threads': process.num_threads(),
        }
    except psutil.Error as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    """
    Get application uptime

    Returns:
        Dictionary with uptime information
    """
    uptime_seconds = time.time() - START_TIME

    return {
        'uptime_seconds': round(uptime_seconds, 2),
        'uptime_minutes': round(uptime_seconds / 60, 2),
        'uptime_hours': round(uptime_seconds / 3600, 2),
        'started_at': datetime.fromtimestamp(START_TIME, timezone.utc).isoformat()
    }


def check_storage(app) -> Dict[str, Any]:
    """
    Check that customer storage can be reached

    Database mode pings the engine; local mode checks that the data folder
    exists and is writable.
    """
    mode = app.config.get('STORAGE_MODE', 'local')

    if mode == 'database':
        from database.connection import check_db_connection
        try:
            return {'mode': mode, 'healthy': check_db_connection()}
        except RuntimeError as e:
            return {'mode': mode, 'healthy': False, 'error': str(e)}

    data_folder = app.config['DATA_FOLDER']
    exists = os.path.isdir(data_folder)
    writable = os.access(data_folder, os.W_OK) if exists else False
    return {
        'mode': mode,
        'path': data_folder,
        'exists': exists,
        'writable': writable,
        'healthy': exists and writable
    }


def check_auth_provider(app) -> Dict[str, Any]:
    """Report which identity provider is configured"""
    provider = app.extensions.get('identity_provider')
    return {
        'provider': provider.name if provider else None,
        'healthy': provider is not None
    }


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint
    Returns 200 if application is running
    """
    return jsonify({
        'status': 'healthy',
        'timestamp': utc_now().isoformat(),
        'service': SERVICE_NAME
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness probe endpoint
    Returns 200 if storage and the identity provider are usable
    """
    try:
        storage = check_storage(current_app)
        auth = check_auth_provider(current_app)
        is_ready = storage['healthy'] and auth['healthy']

        response = {
            'status': 'ready' if is_ready else 'not_ready',
            'timestamp': utc_now().isoformat(),
            'checks': {
                'storage': storage,
                'auth': auth
            }
        }

        return jsonify(response), 200 if is_ready else 503

    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return jsonify({
            'status': 'error',
            'error': str(e),
            'timestamp': utc_now().isoformat()
        }), 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """
    Basic metrics endpoint
    Returns system metrics and application statistics
    """
    response = {
        'timestamp': utc_now().isoformat(),
        'service': SERVICE_NAME,
        'version': SERVICE_VERSION,
        'environment': os.environ.get('FLASK_ENV', 'development'),
        'uptime': get_uptime(),
        'system': get_system_metrics(),
        'storage_mode': current_app.config.get('STORAGE_MODE'),
        'auth_provider': check_auth_provider(current_app)['provider'],
        'python_version': sys.version.split()[0]
    }

    return jsonify(response), 200


@health_bp.route('/ping', methods=['GET'])
def ping():
    """Simple ping endpoint"""
    return 'pong', 200


def register_health_checks(app):
    """
    Register health check blueprint with Flask app

    Args:
        app: Flask application instance
    """
    app.register_blueprint(health_bp, url_prefix='/api')
    logger.info("Health check endpoints registered")
    logger.info("Available endpoints: /api/health, /api/ready, /api/metrics, /api/ping")
