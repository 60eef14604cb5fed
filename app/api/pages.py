"""
Page Routes Blueprint

Entry point navigation. The customer screens are served by a separate client
that talks to the JSON API.
"""

from flask import Blueprint, redirect, url_for

# Create blueprint
pages_bp = Blueprint('pages', __name__)


def get_auth():
    """Get auth module - imported lazily to avoid circular imports"""
    import auth
    return auth


@pages_bp.route('/')
def index():
    """Send visitors to the login page, or to the customer list once signed in"""
    auth = get_auth()
    if not auth.is_authenticated():
        return redirect(url_for('auth_bp.login_page'))
    return redirect(url_for('customers_bp.list_customers'))
