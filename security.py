"""
Request Hardening
Signing key, response headers, CORS on the JSON API, JSON error bodies and
request logging for StitchLink
"""
import os
import secrets
import time
from typing import Dict, Any, Iterable, List
from flask import Flask, g, request, session, jsonify, Response
from flask_cors import CORS
import logging

logger = logging.getLogger(__name__)

QUIET_PATHS = ('/api/health', '/api/ping')

MIN_SECRET_KEY_LENGTH = 32

# A production deployment cannot start usefully without these
PRODUCTION_ENV_VARS = ('SECRET_KEY', 'DATABASE_URL', 'SUPABASE_URL', 'SUPABASE_ANON_KEY')

SECURITY_HEADERS = {
    'X-Frame-Options': 'SAMEORIGIN',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
    # JSON API plus a single login page
    'Content-Security-Policy': (
        "default-src 'self'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data:; "
        "frame-ancestors 'self'"
    ),
}

# status -> (error, message) of the JSON error body
HTTP_ERRORS = {
    400: ('Bad Request', 'The request could not be understood or was missing required parameters'),
    401: ('Unauthorized', 'Authentication required'),
    403: ('Forbidden', 'You do not have permission to access this resource'),
    404: ('Not Found', 'The requested resource was not found'),
    405: ('Method Not Allowed', 'The method is not allowed for the requested URL'),
    413: ('Payload Too Large', 'The request is too large'),
    429: ('Rate Limit Exceeded', 'Too many requests. Please try again later'),
    503: ('Service Unavailable', 'The service is temporarily unavailable. Please try again later'),
}


def resolve_secret_key(config: Dict[str, Any]) -> str:
    """
    Return the key that signs session cookies and local access tokens

    A missing or short key is replaced by a random one, which signs every
    user out whenever the process restarts.
    """
    secret_key = config.get('SECRET_KEY')
    if secret_key and len(secret_key) >= MIN_SECRET_KEY_LENGTH:
        return secret_key

    if secret_key:
        logger.warning(f"SECRET_KEY is shorter than {MIN_SECRET_KEY_LENGTH} characters, ignoring it")
    if os.environ.get('FLASK_ENV') == 'production':
        logger.error("No usable SECRET_KEY in production; sessions will not survive a restart")

    return secrets.token_hex(32)


def setup_security_headers(app: Flask):
    """Add security headers to every response; API responses are never cached"""
    @app.after_request
    def add_security_headers(response: Response) -> Response:
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value

        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        # Customer records carry contact details
        if request.path.startswith('/api/'):
            response.headers['Cache-Control'] = 'no-store'

        return response


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Configure CORS for the API routes

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    cors_origins = config.get('CORS_ORIGINS', ['*'])

    if not app.debug and '*' in cors_origins:
        logger.warning("Using wildcard CORS in production! Set CORS_ORIGINS environment variable.")

    CORS(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        methods=config.get('CORS_METHODS', ['GET', 'POST', 'PUT', 'OPTIONS']),
        allow_headers=config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'Authorization']),
        supports_credentials=True,
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def error_body(status_code: int) -> Dict[str, Any]:
    error, message = HTTP_ERRORS[status_code]
    return {'success': False, 'error': error, 'message': message}


def internal_error_body(error: Exception, include_details: bool = False) -> Dict[str, Any]:
    """
    500 body; exception details only when include_details is set (debug)
    """
    body = {
        'success': False,
        'error': 'Internal Server Error',
        'message': 'An error occurred while processing your request'
    }
    if include_details:
        body['details'] = str(error)
        body['type'] = type(error).__name__
    return body


def setup_error_handlers(app: Flask):
    """Answer HTTP errors in the API's JSON envelope, without stack traces"""
    def json_error(status_code):
        def handler(error):
            return jsonify(error_body(status_code)), status_code
        return handler

    for status_code in HTTP_ERRORS:
        app.register_error_handler(status_code, json_error(status_code))

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify(internal_error_body(error, app.debug)), 500


def setup_request_logging(app: Flask):
    """Log each request with its status, duration and signed-in user"""
    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_response(response: Response) -> Response:
        if request.path in QUIET_PATHS:
            return response

        started = g.get('request_started')
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        logger.info(
            f"{request.method} {request.path} status={response.status_code} "
            f"duration={elapsed_ms:.1f}ms user={session.get('user_id', '-')} "
            f"from {request.remote_addr}"
        )
        return response


def missing_environment_variables(names: Iterable[str] = PRODUCTION_ENV_VARS) -> List[str]:
    """Names from `names` that are unset or empty in the environment"""
    return [name for name in names if not os.environ.get(name)]


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    app.secret_key = resolve_secret_key(config)
    app.config['SECRET_KEY'] = app.secret_key

    setup_cors(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    if not app.debug:
        missing = missing_environment_variables()
        if missing:
            logger.error(f"Missing required environment variables in production: {missing}")

    logger.info("Security configuration complete")
