"""
Customer Store - local persisted customer/measurement collection.

The store is an explicit state object: it is built once at application startup
from a single JSON slot on disk, holds the whole collection in memory and
rewrites the slot atomically after every mutation. Mutations are serialized by
a lock and replace the in-memory collection only after the write succeeded, so
readers never observe a partial update.
"""

import copy
import json
import logging
import os
import threading
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from measurement_fields import (
    DEFAULT_COMPLETION_STATUS,
    DEFAULT_PAYMENT_STATUS,
    empty_measurement_values,
)
from services.errors import CustomerNotFoundError, MeasurementNotFoundError, PersistenceError
from services.projections import build_orders
from services.timestamps import parse_timestamp, to_iso, utc_now

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ('name', 'email', 'phone', 'nic', 'job_number', 'request_date')


def generate_id() -> str:
    """Generate a new opaque record id."""
    return str(uuid.uuid4())


def sort_measurements(measurements: List[Dict]) -> List[Dict]:
    """Return measurements ordered by capture date, newest first."""
    return sorted(measurements, key=lambda m: parse_timestamp(m['date']), reverse=True)


def build_measurement(fields: Optional[Dict], customer_id: str, measurement_id: str,
                      captured_at: str) -> Dict:
    """
    Build a complete measurement record from submitted fields.

    Every measurement field is present in the result; fields missing from the
    submission are None. Statuses fall back to Unpaid / Pending.
    """
    fields = fields or {}
    measurement = {
        'id': measurement_id,
        'customer_id': customer_id,
        'date': captured_at,
        'payment_status': fields.get('payment_status') or DEFAULT_PAYMENT_STATUS,
        'completion_status': fields.get('completion_status') or DEFAULT_COMPLETION_STATUS,
    }
    values = empty_measurement_values()
    for name in values:
        if name in fields:
            values[name] = fields[name]
    measurement.update(values)
    return measurement


class CustomerStore:
    """In-memory customer collection mirrored to a durable JSON slot."""

    def __init__(self, filepath: str, clock: Callable[[], datetime] = None):
        self.filepath = filepath
        self._clock = clock or utc_now
        self._lock = threading.RLock()

        folder = os.path.dirname(filepath)
        if folder:
            os.makedirs(folder, exist_ok=True)

        self._customers = self._load()
        logger.info(f"Customer store loaded from {filepath} ({len(self._customers)} customers)")

    # ==================== FILE OPERATIONS ====================

    def _load(self) -> List[Dict]:
        """Read the slot once; a missing or empty slot is an empty collection"""
        if not os.path.exists(self.filepath):
            return []

        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                content = f.read().strip()
            if not content:
                return []
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"JSON decode error in {self.filepath}: {e}")
            backup_path = f"{self.filepath}.backup.{datetime.now().strftime('%Y%m%d_%H%M%S')}"
            os.rename(self.filepath, backup_path)
            logger.warning(f"Corrupted customer store backed up to {backup_path}")
            return []

        customers = data.get('customers', []) if isinstance(data, dict) else data
        for customer in customers:
            customer['measurements'] = sort_measurements(customer.get('measurements') or [])
        return customers

    def _save(self, customers: List[Dict]):
        """Atomic write: temp file first, then rename over the slot"""
        temp_path = f"{self.filepath}.tmp"
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump({'customers': customers}, f, indent=2, default=str)
            os.replace(temp_path, self.filepath)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving customer store {self.filepath}: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise PersistenceError(f"Failed to save customers: {e}")

    def _commit(self, customers: List[Dict]):
        self._save(customers)
        self._customers = customers

    def _now(self) -> str:
        return to_iso(self._clock())

    @staticmethod
    def _find_customer(customers: List[Dict], customer_id: str,
                       user_id: Optional[str] = None) -> Dict:
        for customer in customers:
            if customer['id'] != customer_id:
                continue
            if user_id is not None and customer.get('user_id') != user_id:
                break
            return customer
        raise CustomerNotFoundError(customer_id)

    # ==================== READS ====================

    def list_customers(self, user_id: Optional[str] = None) -> List[Dict]:
        """List customers, newest first, optionally scoped to one tenant."""
        with self._lock:
            customers = [
                c for c in self._customers
                if user_id is None or c.get('user_id') == user_id
            ]
            customers = copy.deepcopy(customers)
        customers.sort(key=lambda c: parse_timestamp(c['created_at']), reverse=True)
        return customers

    def get_customer(self, customer_id: str, user_id: Optional[str] = None) -> Optional[Dict]:
        """Get a customer by id, or None when it does not exist for the tenant."""
        with self._lock:
            try:
                customer = self._find_customer(self._customers, customer_id, user_id)
            except CustomerNotFoundError:
                return None
            return copy.deepcopy(customer)

    def list_orders(self, user_id: Optional[str] = None) -> List[Dict]:
        """Flattened (customer, measurement) order rows, newest measurement first."""
        return build_orders(self.list_customers(user_id))

    # ==================== MUTATIONS ====================

    def add_customer(self, contact: Dict, initial_measurement: Optional[Dict] = None) -> Dict:
        """
        Create a customer together with its first measurement.

        Args:
            contact: Validated contact fields (name, email, phone, nic,
                job_number, request_date) plus the owning user_id
            initial_measurement: Measurement values and optional statuses

        Returns:
            The new customer with its single measurement
        """
        now = self._now()
        customer_id = generate_id()
        customer = {
            'id': customer_id,
            'user_id': contact.get('user_id'),
        }
        for field in CONTACT_FIELDS:
            customer[field] = contact.get(field)
        customer['request_date'] = to_iso(customer['request_date'])
        customer['created_at'] = now
        customer['measurements'] = [
            build_measurement(initial_measurement, customer_id, generate_id(), now)
        ]

        with self._lock:
            customers = copy.deepcopy(self._customers)
            customers.append(customer)
            self._commit(customers)

        logger.info(f"Created customer: {customer_id}")
        return copy.deepcopy(customer)

    def add_measurement(self, customer_id: str, fields: Dict,
                        user_id: Optional[str] = None) -> Dict:
        """
        Append a new measurement to a customer's history.

        Raises:
            CustomerNotFoundError: If the customer does not exist for the tenant
        """
        with self._lock:
            customers = copy.deepcopy(self._customers)
            customer = self._find_customer(customers, customer_id, user_id)

            measurement = build_measurement(fields, customer_id, generate_id(), self._now())
            customer['measurements'] = sort_measurements(customer['measurements'] + [measurement])
            self._commit(customers)

        logger.info(f"Added measurement {measurement['id']} to customer {customer_id}")
        return copy.deepcopy(measurement)

    def update_measurement(self, customer_id: str, measurement: Dict,
                           user_id: Optional[str] = None) -> Dict:
        """
        Replace a measurement record in full.

        Fields missing from `measurement` are cleared, not merged. The capture
        date is kept unless the replacement supplies one.

        Raises:
            CustomerNotFoundError: If the customer does not exist for the tenant
            MeasurementNotFoundError: If the customer has no such measurement
        """
        measurement_id = measurement.get('id')

        with self._lock:
            customers = copy.deepcopy(self._customers)
            customer = self._find_customer(customers, customer_id, user_id)

            index = next(
                (i for i, m in enumerate(customer['measurements']) if m['id'] == measurement_id),
                None
            )
            if index is None:
                raise MeasurementNotFoundError(customer_id, measurement_id)

            existing = customer['measurements'][index]
            captured_at = to_iso(measurement['date']) if measurement.get('date') else existing['date']
            replacement = build_measurement(measurement, customer_id, measurement_id, captured_at)

            measurements = list(customer['measurements'])
            measurements[index] = replacement
            customer['measurements'] = sort_measurements(measurements)
            self._commit(customers)

        logger.info(f"Updated measurement {measurement_id} of customer {customer_id}")
        return copy.deepcopy(replacement)

    def for_user(self, user_id: str) -> 'TenantCustomerStore':
        """Bind the store to one tenant."""
        return TenantCustomerStore(self, user_id)


class TenantCustomerStore:
    """View of a CustomerStore restricted to a single tenant (shop owner)."""

    def __init__(self, store: CustomerStore, user_id: str):
        self.store = store
        self.user_id = user_id

    def list_customers(self) -> List[Dict]:
        return self.store.list_customers(self.user_id)

    def get_customer(self, customer_id: str) -> Optional[Dict]:
        return self.store.get_customer(customer_id, self.user_id)

    def list_orders(self) -> List[Dict]:
        return self.store.list_orders(self.user_id)

    def add_customer(self, contact: Dict, initial_measurement: Optional[Dict] = None) -> Dict:
        contact = dict(contact, user_id=self.user_id)
        return self.store.add_customer(contact, initial_measurement)

    def add_measurement(self, customer_id: str, fields: Dict) -> Dict:
        return self.store.add_measurement(customer_id, fields, self.user_id)

    def update_measurement(self, customer_id: str, measurement: Dict) -> Dict:
        return self.store.update_measurement(customer_id, measurement, self.user_id)
