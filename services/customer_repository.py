"""
Customer Repository - database access layer for customers and measurements.

Backend-backed counterpart of the local CustomerStore with the same operation
names. Every query is scoped to the tenant (shop owner) the repository is
bound to. Creating a customer writes the customer row and its first
measurement inside the caller's transaction, so a failed measurement insert
rolls the customer back as well.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from database.models import Customer, Measurement, generate_uuid
from measurement_fields import DEFAULT_COMPLETION_STATUS, DEFAULT_PAYMENT_STATUS
from services.customer_store import CONTACT_FIELDS, sort_measurements
from services.errors import CustomerNotFoundError, MeasurementNotFoundError, PersistenceError
from services.projections import build_orders
from services.timestamps import parse_timestamp, utc_now

logger = logging.getLogger(__name__)


class CustomerRepository:
    """Repository for customer/measurement database operations of one tenant."""

    def __init__(self, session: Session, user_id: str):
        self.session = session
        self.user_id = user_id

    def _customer_query(self):
        return self.session.query(Customer).filter(Customer.user_id == self.user_id)

    def _get_customer_row(self, customer_id: str) -> Optional[Customer]:
        return self._customer_query().filter(Customer.id == customer_id).first()

    def _flush(self, message: str, stage: str = None):
        """Flush pending writes, turning backend failures into PersistenceError."""
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"{message}: {e}")
            raise PersistenceError(f"{message}: {e}", stage=stage)

    @staticmethod
    def _customer_dict(customer: Customer) -> Dict:
        data = customer.to_dict()
        data['measurements'] = sort_measurements(data['measurements'])
        return data

    @staticmethod
    def _apply_measurement(row: Measurement, fields: Dict):
        row.set_values(fields)
        row.payment_status = fields.get('payment_status') or DEFAULT_PAYMENT_STATUS
        row.completion_status = fields.get('completion_status') or DEFAULT_COMPLETION_STATUS

    # =========================================================================
    # READS
    # =========================================================================

    def list_customers(self) -> List[Dict]:
        """List the tenant's customers with measurements, newest first."""
        try:
            customers = (
                self._customer_query()
                .options(selectinload(Customer.measurements))
                .order_by(Customer.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching customers: {e}")
            raise PersistenceError(f"Error fetching customers: {e}")
        return [self._customer_dict(c) for c in customers]

    def get_customer(self, customer_id: str) -> Optional[Dict]:
        """Get a customer by ID."""
        try:
            customer = self._get_customer_row(customer_id)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching customer {customer_id}: {e}")
            raise PersistenceError(f"Error fetching customer: {e}")
        return self._customer_dict(customer) if customer else None

    def list_orders(self) -> List[Dict]:
        """Flattened order rows across all customers, newest measurement first."""
        return build_orders(self.list_customers())

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_customer(self, contact: Dict, initial_measurement: Optional[Dict] = None) -> Dict:
        """
        Insert a customer and its first measurement as one logical operation.

        Raises:
            PersistenceError: stage='customer' when the customer insert fails,
                stage='measurement' when the measurement insert fails (the
                customer insert is rolled back with it)
        """
        now = utc_now()
        customer = Customer(
            id=generate_uuid(),
            user_id=self.user_id,
            created_at=now,
        )
        for field in CONTACT_FIELDS:
            setattr(customer, field, contact.get(field))
        if contact.get('request_date'):
            customer.request_date = parse_timestamp(contact['request_date'])

        self.session.add(customer)
        self._flush("Error adding customer", stage='customer')

        measurement = Measurement(id=generate_uuid(), customer_id=customer.id, date=now)
        self._apply_measurement(measurement, initial_measurement or {})
        customer.measurements.append(measurement)
        self._flush("Error adding measurement; the customer was not saved", stage='measurement')

        logger.info(f"Created customer: {customer.id}")
        return self._customer_dict(customer)

    def add_measurement(self, customer_id: str, fields: Dict) -> Dict:
        """
        Append a new measurement to a customer.

        Raises:
            CustomerNotFoundError: If the customer does not belong to the tenant
        """
        customer = self._get_customer_row(customer_id)
        if not customer:
            raise CustomerNotFoundError(customer_id)

        measurement = Measurement(id=generate_uuid(), customer_id=customer.id, date=utc_now())
        self._apply_measurement(measurement, fields)
        customer.measurements.append(measurement)
        self._flush("Error adding measurement")

        logger.info(f"Added measurement {measurement.id} to customer {customer_id}")
        return measurement.to_dict()

    def update_measurement(self, customer_id: str, measurement: Dict) -> Dict:
        """
        Replace a measurement in full (no field-level merge).

        Raises:
            CustomerNotFoundError: If the customer does not belong to the tenant
            MeasurementNotFoundError: If the customer has no such measurement
        """
        measurement_id = measurement.get('id')
        row = (
            self.session.query(Measurement)
            .join(Measurement.customer)
            .filter(
                Measurement.id == measurement_id,
                Measurement.customer_id == customer_id,
                Customer.user_id == self.user_id,
            )
            .first()
        )
        if row is None:
            if self._get_customer_row(customer_id) is None:
                raise CustomerNotFoundError(customer_id)
            raise MeasurementNotFoundError(customer_id, measurement_id)

        self._apply_measurement(row, measurement)
        if measurement.get('date'):
            row.date = parse_timestamp(measurement['date'])
        self._flush("Error updating measurement")

        logger.info(f"Updated measurement {measurement_id} of customer {customer_id}")
        return row.to_dict()
