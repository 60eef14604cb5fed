"""
Database package for StitchLink.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import (
    Base,
    init_engine,
    get_engine,
    get_db_session,
    init_db,
    check_db_connection,
    is_db_configured
)

from database.models import (
    Customer,
    Measurement
)

__all__ = [
    # Connection
    'Base',
    'init_engine',
    'get_engine',
    'get_db_session',
    'init_db',
    'check_db_connection',
    'is_db_configured',
    # Models
    'Customer',
    'Measurement'
]
