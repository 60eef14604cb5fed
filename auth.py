"""
Authentication Boundary
Identity is delegated to an external provider; this module only talks to it,
keeps the resulting principal in the Flask session and guards routes.

Providers:
- SupabaseAuthProvider: hosted auth REST API (production)
- LocalAuthProvider: JSON users file stand-in for development and tests

STORAGE POLICY:
- Production: the hosted provider is REQUIRED. The local users file is disabled.
"""
import os
import json
import uuid
import logging
import threading
from functools import wraps
from typing import Dict, Optional, Tuple

import requests
from flask import current_app, g, session, redirect, url_for, jsonify, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import generate_password_hash, check_password_hash

from services.timestamps import utc_now

logger = logging.getLogger(__name__)

DEFAULT_OWNER = {
    'name': 'Shop Owner',
    'email': 'owner@stitch.link',
    'password': 'password123',
}


class AuthError(Exception):
    """Raised when the identity provider rejects or cannot serve a request"""
    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class IdentityProvider:
    """
    Contract consumed by the application.

    A principal is a dict with 'id', 'email' and 'display_name'.
    """
    name = 'base'

    def sign_in(self, email: str, password: str) -> Tuple[Dict, str]:
        """Return (principal, access_token) or raise AuthError"""
        raise NotImplementedError

    def sign_up(self, name: str, email: str, password: str) -> Dict:
        """Register a user and return its principal, or raise AuthError"""
        raise NotImplementedError

    def get_user(self, access_token: str) -> Optional[Dict]:
        """Resolve a token to a principal; None when the token is invalid"""
        raise NotImplementedError

    def sign_out(self, access_token: Optional[str]) -> None:
        """Invalidate the session on the provider side"""
        raise NotImplementedError


# ============================================================================
# HOSTED PROVIDER
# ============================================================================

class SupabaseAuthProvider(IdentityProvider):
    """Client for the hosted auth REST API (GoTrue endpoints under /auth/v1)"""
    name = 'supabase'

    def __init__(self, url: str, anon_key: str, timeout: int = 10, http=None):
        self.base_url = url.rstrip('/') + '/auth/v1'
        self.anon_key = anon_key
        self.timeout = timeout
        self.http = http or requests.Session()

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            'apikey': self.anon_key,
            'Content-Type': 'application/json',
        }
        if access_token:
            headers['Authorization'] = f'Bearer {access_token}'
        return headers

    def _request(self, method: str, path: str, access_token: Optional[str] = None, **kwargs):
        try:
            return self.http.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers(access_token),
                timeout=self.timeout,
                **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"Identity provider unreachable: {e}")
            raise AuthError(f"Identity provider unreachable: {e}", status_code=503)

    @staticmethod
    def _error_message(response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        for key in ('error_description', 'msg', 'message', 'error'):
            if body.get(key):
                return body[key]
        return f"HTTP {response.status_code}"

    @staticmethod
    def _principal(user: Dict) -> Dict:
        metadata = user.get('user_metadata') or {}
        return {
            'id': user['id'],
            'email': user.get('email'),
            'display_name': metadata.get('full_name') or user.get('email'),
        }

    def sign_in(self, email, password):
        response = self._request(
            'POST', '/token',
            params={'grant_type': 'password'},
            json={'email': email, 'password': password}
        )
        if response.status_code != 200:
            raise AuthError(self._error_message(response), status_code=401)

        data = response.json()
        logger.info(f"User authenticated: {email}")
        return self._principal(data['user']), data['access_token']

    def sign_up(self, name, email, password):
        response = self._request(
            'POST', '/signup',
            json={'email': email, 'password': password, 'data': {'full_name': name}}
        )
        if response.status_code not in (200, 201):
            raise AuthError(self._error_message(response), status_code=400)

        data = response.json()
        user = data.get('user') or data
        logger.info(f"Registered user: {email}")
        return self._principal(user)

    def get_user(self, access_token):
        response = self._request('GET', '/user', access_token=access_token)
        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            raise AuthError(self._error_message(response), status_code=503)
        return self._principal(response.json())

    def sign_out(self, access_token):
        if not access_token:
            return
        try:
            response = self._request('POST', '/logout', access_token=access_token)
        except AuthError as e:
            logger.warning(f"Sign-out not confirmed by provider: {e.message}")
            return
        if response.status_code not in (200, 204):
            logger.warning(f"Sign-out returned HTTP {response.status_code}")


# ============================================================================
# LOCAL PROVIDER
# ============================================================================

class LocalAuthProvider(IdentityProvider):
    """
    Development stand-in for the hosted provider.
    Users live in a JSON file with hashed passwords; access tokens are signed
    user ids.
    """
    name = 'local'

    def __init__(self, users_file: str, secret_key: str, token_max_age: int = 7 * 24 * 3600):
        self.users_file = users_file
        self.token_max_age = token_max_age
        self.serializer = URLSafeTimedSerializer(secret_key, salt='stitchlink-auth')
        # Guards every read-modify-write of the users file
        self._lock = threading.RLock()

    def init_users_file(self):
        """Create the users file with the default shop-owner account"""
        folder = os.path.dirname(self.users_file)
        if folder:
            os.makedirs(folder, exist_ok=True)

        with self._lock:
            if os.path.exists(self.users_file):
                return False

            owner = {
                'id': str(uuid.uuid4()),
                'name': DEFAULT_OWNER['name'],
                'email': DEFAULT_OWNER['email'],
                'password_hash': generate_password_hash(DEFAULT_OWNER['password']),
                'created_at': utc_now().isoformat(),
                'last_login': None
            }
            self.save_users([owner])
        logger.info(f"Created default owner account: {DEFAULT_OWNER['email']}")
        return True

    def load_users(self):
        self.init_users_file()
        try:
            with open(self.users_file, 'r', encoding='utf-8') as f:
                return json.load(f).get('users', [])
        except (OSError, ValueError) as e:
            logger.error(f"Error loading users: {e}")
            raise AuthError("User directory unavailable", status_code=503)

    def save_users(self, users):
        """Atomic write: temp file first, then rename over the users file"""
        temp_path = f"{self.users_file}.tmp"
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump({'users': users}, f, indent=2)
            os.replace(temp_path, self.users_file)
        except OSError as e:
            logger.error(f"Error saving users: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise AuthError("User directory unavailable", status_code=503)

    @staticmethod
    def _principal(user):
        return {
            'id': user['id'],
            'email': user['email'],
            'display_name': user.get('name') or user['email'],
        }

    def _find_by_email(self, users, email):
        email = (email or '').lower()
        return next((u for u in users if u['email'].lower() == email), None)

    def sign_in(self, email, password):
        with self._lock:
            users = self.load_users()
            user = self._find_by_email(users, email)

            if not user or not check_password_hash(user['password_hash'], password or ''):
                raise AuthError("Invalid login credentials", status_code=401)

            user['last_login'] = utc_now().isoformat()
            self.save_users(users)

        token = self.serializer.dumps({'uid': user['id']})
        logger.info(f"User authenticated: {email}")
        return self._principal(user), token

    def sign_up(self, name, email, password):
        with self._lock:
            users = self.load_users()
            if self._find_by_email(users, email):
                raise AuthError("User already registered", status_code=400)

            user = {
                'id': str(uuid.uuid4()),
                'name': name,
                'email': email,
                'password_hash': generate_password_hash(password),
                'created_at': utc_now().isoformat(),
                'last_login': None
            }
            users.append(user)
            self.save_users(users)
        logger.info(f"Registered user: {email}")
        return self._principal(user)

    def get_user(self, access_token):
        try:
            payload = self.serializer.loads(access_token, max_age=self.token_max_age)
        except SignatureExpired:
            logger.info("Rejected expired access token")
            return None
        except BadSignature:
            return None

        user = next((u for u in self.load_users() if u['id'] == payload.get('uid')), None)
        return self._principal(user) if user else None

    def sign_out(self, access_token):
        # Tokens are stateless; clearing the session is all there is to do
        return None


def build_identity_provider(config):
    """
    Create the identity provider for the application

    Args:
        config: Flask config mapping

    Raises:
        StoragePolicyError: If production has no hosted provider configured
    """
    from config import get_auth_mode, is_production, StoragePolicyError

    if get_auth_mode(config) == 'supabase':
        return SupabaseAuthProvider(
            config['SUPABASE_URL'],
            config['SUPABASE_ANON_KEY'],
            timeout=config.get('AUTH_TIMEOUT', 10)
        )

    if is_production():
        raise StoragePolicyError(
            "Local authentication is disabled in production. "
            "SUPABASE_URL and SUPABASE_ANON_KEY must be configured."
        )

    users_file = os.path.join(config['DATA_FOLDER'], config['USERS_FILE'])
    return LocalAuthProvider(
        users_file,
        config['SECRET_KEY'],
        token_max_age=config.get('LOCAL_AUTH_TOKEN_MAX_AGE', 7 * 24 * 3600)
    )


# ============================================================================
# SESSION HELPERS
# ============================================================================

def get_identity_provider() -> IdentityProvider:
    return current_app.extensions['identity_provider']


def login_user(principal, access_token):
    """Set user session"""
    session['user_id'] = principal['id']
    session['user_email'] = principal.get('email')
    session['user_display_name'] = principal.get('display_name')
    session['access_token'] = access_token
    session.permanent = True


def logout_user():
    """Sign out with the provider and clear the session"""
    token = session.get('access_token') or _bearer_token()
    get_identity_provider().sign_out(token)
    session.clear()


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def get_current_principal() -> Optional[Dict]:
    """
    Resolve the authenticated principal for this request

    The session cookie is checked first, then an Authorization bearer token
    which is verified with the identity provider.
    """
    if 'principal' in g:
        return g.principal

    principal = None
    if 'user_id' in session:
        principal = {
            'id': session['user_id'],
            'email': session.get('user_email'),
            'display_name': session.get('user_display_name'),
        }
    else:
        token = _bearer_token()
        if token:
            try:
                principal = get_identity_provider().get_user(token)
            except AuthError as e:
                logger.warning(f"Token verification failed: {e.message}")

    g.principal = principal
    return principal


def is_authenticated():
    """Check if user is logged in"""
    return get_current_principal() is not None


def _wants_json():
    return request.is_json or request.path.startswith('/api/')


# Decorators for route protection
def login_required(f):
    """Decorator to require login for a route"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            if _wants_json():
                return jsonify({'success': False, 'error': 'Authentication required', 'redirect': '/login'}), 401
            return redirect(url_for('auth_bp.login_page'))
        return f(*args, **kwargs)
    return decorated_function
