"""
Authentication Routes Blueprint

Handles sign-in, sign-up and sign-out against the identity provider.
"""

from flask import Blueprint, render_template, request, jsonify, redirect, url_for
import logging

from validators import FormValidationError, clean_signup_form, format_form_errors

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth_bp', __name__)


def get_auth():
    """Get auth module - imported lazily to avoid circular imports"""
    import auth
    return auth


# ============================================================================
# LOGIN/LOGOUT ROUTES
# ============================================================================

@auth_bp.route('/login')
def login_page():
    """Login page"""
    auth = get_auth()
    # If already logged in, go straight to the customer list
    if auth.is_authenticated():
        return redirect(url_for('pages.index'))
    return render_template('login.html')


@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    """API endpoint for user login"""
    auth = get_auth()
    from_form = not request.is_json
    data = request.form.to_dict() if from_form else request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    email = data.get('email')
    email = email.strip() if isinstance(email, str) else ''
    password = data.get('password')
    if not isinstance(password, str):
        password = None

    if not email or not password:
        if from_form:
            return render_template('login.html', error='Email and password required'), 400
        return jsonify({'success': False, 'error': 'Email and password required'}), 400

    try:
        principal, token = auth.get_identity_provider().sign_in(email, password)
    except auth.AuthError as e:
        logger.warning(f"Login failed for {email}: {e.message}")
        if from_form:
            return render_template('login.html', error=e.message), e.status_code
        return jsonify({'success': False, 'error': e.message}), e.status_code

    auth.login_user(principal, token)

    if from_form:
        return redirect(url_for('pages.index'))

    return jsonify({
        'success': True,
        'user': principal,
        'access_token': token,
        'redirect': '/'
    })


@auth_bp.route('/api/auth/signup', methods=['POST'])
def api_signup():
    """Register a new account and sign it in"""
    auth = get_auth()
    try:
        name, email, password = clean_signup_form(request.get_json(silent=True))
    except FormValidationError as e:
        return jsonify(format_form_errors(e.errors)), 400

    provider = auth.get_identity_provider()
    try:
        principal = provider.sign_up(name, email, password)
    except auth.AuthError as e:
        logger.warning(f"Signup failed for {email}: {e.message}")
        return jsonify({'success': False, 'error': e.message}), e.status_code

    try:
        principal, token = provider.sign_in(email, password)
    except auth.AuthError as e:
        logger.warning(f"Signup succeeded but sign-in failed for {email}: {e.message}")
        return jsonify({
            'success': True,
            'user': principal,
            'signed_in': False,
            'message': 'Account created, but automatic sign-in failed. Please log in.',
            'redirect': '/login'
        }), 201

    auth.login_user(principal, token)

    return jsonify({
        'success': True,
        'user': principal,
        'signed_in': True,
        'access_token': token,
        'redirect': '/'
    }), 201


@auth_bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    """API endpoint for user logout"""
    auth = get_auth()
    auth.logout_user()
    return jsonify({'success': True})


@auth_bp.route('/logout')
def logout():
    """Sign out and return to the login page"""
    auth = get_auth()
    auth.logout_user()
    return redirect(url_for('auth_bp.login_page'))


@auth_bp.route('/api/auth/me', methods=['GET'])
def get_current_user_info():
    """Get current user info"""
    auth = get_auth()
    principal = auth.get_current_principal()
    if not principal:
        return jsonify({'success': False, 'error': 'Not authenticated', 'redirect': '/login'}), 401

    return jsonify({'success': True, 'user': principal})
