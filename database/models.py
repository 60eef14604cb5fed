"""
SQLAlchemy models for StitchLink.
Customers are scoped to the shop owner (user_id issued by the identity
provider) and own their dated measurement records.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from database.connection import Base
from measurement_fields import field_names


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def isoformat(value):
    """Serialize a stored datetime as an ISO-8601 UTC string."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


# =============================================================================
# CUSTOMERS
# =============================================================================

class Customer(Base):
    """Customer contact record owned by a shop owner."""
    __tablename__ = 'customers'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    nic = Column(String(50))
    job_number = Column(String(100))
    request_date = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    measurements = relationship(
        "Measurement",
        back_populates="customer",
        order_by="Measurement.date.desc()",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index('ix_customers_user', 'user_id'),
        Index('ix_customers_name', 'name'),
    )

    def to_dict(self, include_measurements=True):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'nic': self.nic,
            'job_number': self.job_number,
            'request_date': isoformat(self.request_date),
            'created_at': isoformat(self.created_at),
        }
        if include_measurements:
            data['measurements'] = [m.to_dict() for m in self.measurements]
        return data


# =============================================================================
# MEASUREMENTS
# =============================================================================

class Measurement(Base):
    """Dated snapshot of a customer's body measurements plus job status."""
    __tablename__ = 'measurements'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    customer_id = Column(String(36), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    payment_status = Column(String(20), nullable=False, default='Unpaid')
    completion_status = Column(String(20), nullable=False, default='Pending')

    # Core
    height = Column(Float)
    neck = Column(Float)
    chest = Column(Float)
    waist = Column(Float)
    hips = Column(Float)
    # Upper Body
    shoulder = Column(Float)
    neck_width = Column(Float)
    underbust = Column(Float)
    nipple_to_nipple = Column(Float)
    single_shoulder = Column(Float)
    front_drop = Column(Float)
    back_drop = Column(Float)
    # Arm
    sleeve_length = Column(Float)
    upperarm_width = Column(Float)
    armhole_curve = Column(Float)
    armhole_curve_straight = Column(Float)
    shoulder_to_wrist = Column(Float)
    shoulder_to_elbow = Column(Float)
    inner_arm_length = Column(Float)
    sleeve_opening = Column(Float)
    cuff_height = Column(Float)
    # Lower Body
    inseam_length = Column(Float)
    outseam_length = Column(Float)
    waist_to_knee_length = Column(Float)
    waist_to_ankle = Column(Float)
    thigh_circ = Column(Float)
    ankle_circ = Column(Float)
    back_rise = Column(Float)
    front_rise = Column(Float)
    leg_opening = Column(Float)
    seat_length = Column(Float)
    # Garment Specific
    neck_band_width = Column(Float)
    collar_width = Column(Float)
    collar_point = Column(Float)
    waist_band = Column(Float)
    shoulder_to_waist = Column(Float)
    shoulder_to_ankle = Column(Float)

    # Relationships
    customer = relationship("Customer", back_populates="measurements")

    __table_args__ = (
        Index('ix_measurements_customer', 'customer_id'),
        Index('ix_measurements_date', 'date'),
    )

    def set_values(self, values):
        """Assign every measurement field; names missing from `values` become None."""
        for name in field_names():
            setattr(self, name, values.get(name))

    def to_dict(self):
        data = {
            'id': self.id,
            'customer_id': self.customer_id,
            'date': isoformat(self.date),
            'payment_status': self.payment_status,
            'completion_status': self.completion_status,
        }
        for name in field_names():
            data[name] = getattr(self, name)
        return data
