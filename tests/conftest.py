"""
Pytest configuration and shared fixtures
"""
import os
import sys
import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

OWNER_EMAIL = 'owner@stitch.link'
OWNER_PASSWORD = 'password123'


@pytest.fixture
def app_config():
    """Fixture providing test configuration"""
    from config import TestingConfig
    return TestingConfig


@pytest.fixture
def test_env_vars():
    """Fixture providing test environment variables"""
    original_env = os.environ.copy()

    os.environ['FLASK_ENV'] = 'testing'
    os.environ['SECRET_KEY'] = 'test-secret-key-minimum-32-chars-long-for-security'
    os.environ.pop('DATABASE_URL', None)
    os.environ.pop('SUPABASE_URL', None)
    os.environ.pop('SUPABASE_ANON_KEY', None)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def sample_customer_data():
    """Fixture providing a valid new-customer form"""
    return {
        'name': 'Jane Doe',
        'email': 'jane@example.com',
        'phone': '0771234567',
        'nic': '199012345678',
        'job_number': 'J-100',
        'request_date': '2024-05-01',
        'payment_status': 'Unpaid',
        'completion_status': 'Pending',
        'chest': '36',
        'waist': '30',
        'sleeve_length': '',
    }


class FixedClock:
    """Deterministic clock advancing one minute per call"""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(minutes=1)
        return value


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / 'customers.json')


@pytest.fixture
def store(store_path, clock):
    """Local customer store backed by a temporary file"""
    from services.customer_store import CustomerStore
    return CustomerStore(store_path, clock=clock)


@pytest.fixture
def app(tmp_path, test_env_vars):
    """Flask application using the local store and local identity provider"""
    from app_init import create_app

    application = create_app({
        'TESTING': True,
        'DATA_FOLDER': str(tmp_path / 'data'),
        'LOG_FOLDER': str(tmp_path / 'logs'),
    })
    yield application


@pytest.fixture
def client(app):
    """Flask test client without a session"""
    return app.test_client()


@pytest.fixture
def auth_client(app):
    """Flask test client signed in as the seeded shop owner"""
    test_client = app.test_client()
    response = test_client.post('/api/auth/login', json={
        'email': OWNER_EMAIL,
        'password': OWNER_PASSWORD,
    })
    assert response.status_code == 200
    return test_client


@pytest.fixture
def db_session():
    """SQLAlchemy session bound to a fresh in-memory SQLite database"""
    from database import connection
    from database.connection import init_engine, init_db

    init_engine('sqlite://')
    init_db()
    session = connection.get_session_factory()()
    try:
        yield session
    finally:
        session.close()
        connection.Base.metadata.drop_all(bind=connection.get_engine())


@pytest.fixture
def db_app(tmp_path, test_env_vars):
    """Flask application storing customers in an in-memory SQLite database"""
    from app_init import create_app
    from database import connection

    application = create_app({
        'TESTING': True,
        'DATABASE_URL': 'sqlite://',
        'DATA_FOLDER': str(tmp_path / 'data'),
        'LOG_FOLDER': str(tmp_path / 'logs'),
    })
    yield application
    connection.Base.metadata.drop_all(bind=connection.get_engine())


@pytest.fixture
def db_auth_client(db_app):
    """Signed-in test client for the database-backed application"""
    test_client = db_app.test_client()
    response = test_client.post('/api/auth/login', json={
        'email': OWNER_EMAIL,
        'password': OWNER_PASSWORD,
    })
    assert response.status_code == 200
    return test_client
