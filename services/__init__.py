"""
Services package for StitchLink.
Business logic for customers and measurements, independent of Flask routing.
"""

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from services.customer_repository import CustomerRepository
from services.customer_store import CustomerStore, TenantCustomerStore
from services.errors import (
    CustomerStoreError,
    CustomerNotFoundError,
    MeasurementNotFoundError,
    PersistenceError
)

__all__ = [
    'CustomerRepository',
    'CustomerStore',
    'TenantCustomerStore',
    'CustomerStoreError',
    'CustomerNotFoundError',
    'MeasurementNotFoundError',
    'PersistenceError',
    'customer_backend'
]


@contextmanager
def customer_backend(app, user_id):
    """
    Yield the customer store for one tenant according to the storage mode.

    In 'database' mode this is a CustomerRepository bound to a fresh session
    that commits when the block exits cleanly. Otherwise it is the tenant view
    of the application's local CustomerStore.
    """
    if app.config.get('STORAGE_MODE') == 'database':
        from database.connection import get_db_session
        try:
            with get_db_session() as session:
                yield CustomerRepository(session, user_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database error: {e}")
    else:
        yield app.extensions['customer_store'].for_user(user_id)
