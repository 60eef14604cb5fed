"""
API Blueprints Package

All HTTP route handlers for the application.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

- pages.py       : Entry point redirect (/)
- auth_routes.py : Authentication (/login, /logout, /api/auth/*)
- customers.py   : Customers, measurements and orders (/api/customers, /api/orders,
                   /api/measurement-fields)

Health and monitoring endpoints (/api/health, /api/ready, /api/metrics,
/api/ping) live in health_checks.py.
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
