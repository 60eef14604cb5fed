"""
WSGI Entry Point for Gunicorn

Run with:
  gunicorn wsgi:app

The Procfile starts the same command for platform deployments.
"""
from app_init import create_app

app = create_app()
