"""
Customer store errors shared by the local store and the database repository.
"""
from typing import Optional


class CustomerStoreError(Exception):
    """Base class for customer store failures"""


class CustomerNotFoundError(CustomerStoreError):
    """No customer with the given id exists for the tenant"""

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"Customer not found: {customer_id}")


class MeasurementNotFoundError(CustomerStoreError):
    """The customer has no measurement with the given id"""

    def __init__(self, customer_id: str, measurement_id: Optional[str]):
        self.customer_id = customer_id
        self.measurement_id = measurement_id
        super().__init__(f"Measurement not found: {measurement_id} (customer {customer_id})")


class PersistenceError(CustomerStoreError):
    """
    A write or read against the durable storage failed.

    `stage` names the step that failed for multi-step operations
    ('customer' or 'measurement' when creating a customer).
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        self.message = message
        self.stage = stage
        super().__init__(message)
