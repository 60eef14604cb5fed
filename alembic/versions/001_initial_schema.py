"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates the customers and measurements tables.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

# Measurement columns in display order; kept inline so the migration does not
# change when the application field table does.
MEASUREMENT_COLUMNS = (
    'height', 'neck', 'chest', 'waist', 'hips',
    'shoulder', 'neck_width', 'underbust', 'nipple_to_nipple', 'single_shoulder',
    'front_drop', 'back_drop',
    'sleeve_length', 'upperarm_width', 'armhole_curve', 'armhole_curve_straight',
    'shoulder_to_wrist', 'shoulder_to_elbow', 'inner_arm_length', 'sleeve_opening',
    'cuff_height',
    'inseam_length', 'outseam_length', 'waist_to_knee_length', 'waist_to_ankle',
    'thigh_circ', 'ankle_circ', 'back_rise', 'front_rise', 'leg_opening', 'seat_length',
    'neck_band_width', 'collar_width', 'collar_point', 'waist_band',
    'shoulder_to_waist', 'shoulder_to_ankle',
)


def upgrade() -> None:
    # Customers table
    op.create_table('customers',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('nic', sa.String(50)),
        sa.Column('job_number', sa.String(100)),
        sa.Column('request_date', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customers_user', 'customers', ['user_id'])
    op.create_index('ix_customers_name', 'customers', ['name'])

    # Measurements table
    op.create_table('measurements',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='Unpaid'),
        sa.Column('completion_status', sa.String(20), nullable=False, server_default='Pending'),
        *[sa.Column(name, sa.Float()) for name in MEASUREMENT_COLUMNS],
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_measurements_customer', 'measurements', ['customer_id'])
    op.create_index('ix_measurements_date', 'measurements', ['date'])


def downgrade() -> None:
    op.drop_index('ix_measurements_date', table_name='measurements')
    op.drop_index('ix_measurements_customer', table_name='measurements')
    op.drop_table('measurements')
    op.drop_index('ix_customers_name', table_name='customers')
    op.drop_index('ix_customers_user', table_name='customers')
    op.drop_table('customers')
