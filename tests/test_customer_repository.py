"""
Tests for the database customer repository (SQLite in memory)
"""
import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from database.models import Customer, Measurement
from services.customer_repository import CustomerRepository
from services.errors import CustomerNotFoundError, MeasurementNotFoundError, PersistenceError
from services.timestamps import parse_timestamp

OWNER = 'user-1'
OTHER_OWNER = 'user-2'

CONTACT = {
    'name': 'Jane Doe',
    'email': 'jane@example.com',
    'phone': '0771234567',
    'nic': '199012345678',
    'job_number': 'J-100',
    'request_date': '2024-05-01T00:00:00+00:00',
}


@pytest.fixture
def repo(db_session):
    return CustomerRepository(db_session, OWNER)


def flush_failing_on(call_number):
    """Side effect for Session.flush that fails on the given call"""
    calls = {'count': 0}
    original_flush = Session.flush

    def flush(session, *args, **kwargs):
        calls['count'] += 1
        if calls['count'] == call_number:
            raise OperationalError('INSERT', {}, Exception('connection lost'))
        return original_flush(session, *args, **kwargs)

    return flush


@pytest.mark.integration
class TestAddCustomer:
    """Tests for customer creation"""

    def test_creates_customer_and_measurement(self, repo, db_session):
        """Test that both rows are written"""
        customer = repo.add_customer(CONTACT, {'chest': 36.0, 'payment_status': 'Partial'})

        assert customer['user_id'] == OWNER
        assert customer['request_date'] == '2024-05-01T00:00:00+00:00'
        assert len(customer['measurements']) == 1
        measurement = customer['measurements'][0]
        assert measurement['chest'] == 36.0
        assert measurement['waist'] is None
        assert measurement['payment_status'] == 'Partial'
        assert measurement['completion_status'] == 'Pending'
        assert db_session.query(Measurement).count() == 1

    def test_customer_failure_reports_customer_stage(self, repo, db_session):
        """Test that a failed customer insert is tagged with its stage"""
        with patch('sqlalchemy.orm.Session.flush', autospec=True, side_effect=flush_failing_on(1)):
            with pytest.raises(PersistenceError) as exc_info:
                repo.add_customer(CONTACT, {'chest': 36.0})

        assert exc_info.value.stage == 'customer'
        assert db_session.query(Customer).count() == 0

    def test_measurement_failure_rolls_back_customer(self, repo, db_session):
        """Test that a failed measurement insert leaves no customer behind"""
        with patch('sqlalchemy.orm.Session.flush', autospec=True, side_effect=flush_failing_on(2)):
            with pytest.raises(PersistenceError) as exc_info:
                repo.add_customer(CONTACT, {'chest': 36.0})

        assert exc_info.value.stage == 'measurement'
        assert 'customer was not saved' in exc_info.value.message
        assert db_session.query(Customer).count() == 0
        assert db_session.query(Measurement).count() == 0


@pytest.mark.integration
class TestReads:
    """Tests for customer reads"""

    def test_list_newest_first(self, repo):
        """Test creation-time ordering"""
        repo.add_customer(dict(CONTACT, name='First'), {})
        repo.add_customer(dict(CONTACT, name='Second'), {})
        names = [c['name'] for c in repo.list_customers()]
        assert names == ['Second', 'First']

    def test_tenant_scoping(self, repo, db_session):
        """Test that another owner's customers are invisible"""
        other = CustomerRepository(db_session, OTHER_OWNER)
        theirs = other.add_customer(dict(CONTACT, name='Theirs'), {})
        repo.add_customer(dict(CONTACT, name='Mine'), {})

        assert [c['name'] for c in repo.list_customers()] == ['Mine']
        assert repo.get_customer(theirs['id']) is None
        assert other.get_customer(theirs['id'])['name'] == 'Theirs'

    def test_get_unknown(self, repo):
        """Test that unknown ids return None"""
        assert repo.get_customer('missing') is None

    def test_list_orders(self, repo):
        """Test order rows across customers"""
        first = repo.add_customer(dict(CONTACT, name='First'), {'payment_status': 'Paid'})
        repo.add_measurement(first['id'], {})
        repo.add_customer(dict(CONTACT, name='Second'), {})

        orders = repo.list_orders()
        assert len(orders) == 3
        dates = [parse_timestamp(o['measurement_date']) for o in orders]
        assert dates == sorted(dates, reverse=True)


@pytest.mark.integration
class TestMeasurements:
    """Tests for measurement append and replacement"""

    def test_add_measurement_newest_first(self, repo):
        """Test that the newest measurement leads the history"""
        customer = repo.add_customer(CONTACT, {'chest': 36.0})
        added = repo.add_measurement(customer['id'], {'chest': 38.0})

        measurements = repo.get_customer(customer['id'])['measurements']
        assert [m['id'] for m in measurements][0] == added['id']
        assert len(measurements) == 2

    def test_add_measurement_unknown_customer(self, repo):
        """Test that appending to a missing customer raises"""
        with pytest.raises(CustomerNotFoundError):
            repo.add_measurement('missing', {})

    def test_add_measurement_other_tenant(self, repo, db_session):
        """Test that appending to another owner's customer raises"""
        theirs = CustomerRepository(db_session, OTHER_OWNER).add_customer(CONTACT, {})
        with pytest.raises(CustomerNotFoundError):
            repo.add_measurement(theirs['id'], {})

    def test_update_replaces_all_fields(self, repo):
        """Test that replacement clears omitted fields"""
        customer = repo.add_customer(CONTACT, {'chest': 36.0, 'waist': 30.0, 'payment_status': 'Paid'})
        measurement = customer['measurements'][0]

        updated = repo.update_measurement(customer['id'], {
            'id': measurement['id'],
            'waist': 31.0,
            'completion_status': 'Completed',
        })

        assert updated['waist'] == 31.0
        assert updated['chest'] is None
        assert updated['payment_status'] == 'Unpaid'
        assert updated['completion_status'] == 'Completed'
        assert updated['date'] == measurement['date']

    def test_update_with_date(self, repo):
        """Test that a supplied date replaces the capture date"""
        customer = repo.add_customer(CONTACT, {})
        measurement = customer['measurements'][0]
        updated = repo.update_measurement(customer['id'], {
            'id': measurement['id'],
            'date': '2023-12-24T08:00:00+00:00',
        })
        assert updated['date'] == '2023-12-24T08:00:00+00:00'

    def test_update_unknown_measurement(self, repo):
        """Test that an unknown measurement id raises"""
        customer = repo.add_customer(CONTACT, {})
        with pytest.raises(MeasurementNotFoundError):
            repo.update_measurement(customer['id'], {'id': 'missing'})

    def test_update_unknown_customer(self, repo):
        """Test that an unknown customer id raises"""
        with pytest.raises(CustomerNotFoundError):
            repo.update_measurement('missing', {'id': 'missing'})

    def test_update_measurement_of_other_tenant(self, repo, db_session):
        """Test that another owner's measurement cannot be replaced"""
        theirs = CustomerRepository(db_session, OTHER_OWNER).add_customer(CONTACT, {'chest': 36.0})
        with pytest.raises(CustomerNotFoundError):
            repo.update_measurement(theirs['id'], {'id': theirs['measurements'][0]['id']})
