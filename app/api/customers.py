"""
Customer Routes Blueprint

Customer and measurement API for the signed-in shop owner:
- Customers: list/search, create with first measurement, detail
- Measurements: append, full replacement
- Orders: flattened measurement history with payment tab and search filters
- Measurement fields: grouped field table for building forms
"""

from flask import Blueprint, request, jsonify, current_app
import logging

from auth import login_required, get_current_principal
from measurement_fields import describe_fields
from services import customer_backend
from services.errors import CustomerNotFoundError, MeasurementNotFoundError, PersistenceError
from services.projections import (
    ALL_PAYMENT_STATUSES,
    customer_summary,
    filter_orders,
    measurement_groups,
    search_customers
)
from validators import (
    FormValidationError,
    clean_customer_form,
    clean_measurement_form,
    format_form_errors
)

logger = logging.getLogger(__name__)

# Create blueprint
customers_bp = Blueprint('customers_bp', __name__)


def current_user_id():
    return get_current_principal()['id']


def persistence_error_response(error: PersistenceError):
    """500 response carrying the backend message and the failing stage"""
    body = {'success': False, 'error': error.message}
    if error.stage:
        body['stage'] = error.stage
    return jsonify(body), 500


def not_found_response(error):
    return jsonify({'success': False, 'error': str(error)}), 404


def with_groups(customer):
    """Attach the non-empty display groups to every measurement"""
    for measurement in customer['measurements']:
        measurement['measurement_groups'] = measurement_groups(measurement)
    return customer


# ============================================================================
# CUSTOMERS
# ============================================================================

@customers_bp.route('/api/customers', methods=['GET'])
@login_required
def list_customers():
    """Customer list, newest first, optionally filtered by name or NIC"""
    try:
        with customer_backend(current_app, current_user_id()) as store:
            customers = store.list_customers()

        customers = search_customers(customers, request.args.get('search', ''))
        return jsonify({
            'success': True,
            'customers': [customer_summary(c) for c in customers]
        })
    except PersistenceError as e:
        return persistence_error_response(e)


@customers_bp.route('/api/customers', methods=['POST'])
@login_required
def create_customer():
    """Create a customer together with its first measurement"""
    try:
        contact, measurement = clean_customer_form(request.get_json(silent=True))
    except FormValidationError as e:
        return jsonify(format_form_errors(e.errors)), 400

    try:
        with customer_backend(current_app, current_user_id()) as store:
            customer = store.add_customer(contact, measurement)
        return jsonify({'success': True, 'customer': customer}), 201
    except PersistenceError as e:
        logger.error(f"Customer creation failed at stage {e.stage}: {e.message}")
        return persistence_error_response(e)


@customers_bp.route('/api/customers/<customer_id>', methods=['GET'])
@login_required
def get_customer(customer_id):
    """Customer detail with measurement history grouped for display"""
    try:
        with customer_backend(current_app, current_user_id()) as store:
            customer = store.get_customer(customer_id)
    except PersistenceError as e:
        return persistence_error_response(e)

    if customer is None:
        return not_found_response(CustomerNotFoundError(customer_id))

    return jsonify({'success': True, 'customer': with_groups(customer)})


# ============================================================================
# MEASUREMENTS
# ============================================================================

@customers_bp.route('/api/customers/<customer_id>/measurements', methods=['POST'])
@login_required
def add_measurement(customer_id):
    """Record a new measurement for an existing customer"""
    try:
        fields = clean_measurement_form(request.get_json(silent=True))
    except FormValidationError as e:
        return jsonify(format_form_errors(e.errors)), 400

    try:
        with customer_backend(current_app, current_user_id()) as store:
            measurement = store.add_measurement(customer_id, fields)
        return jsonify({'success': True, 'measurement': measurement}), 201
    except CustomerNotFoundError as e:
        return not_found_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)


@customers_bp.route('/api/customers/<customer_id>/measurements/<measurement_id>', methods=['PUT'])
@login_required
def update_measurement(customer_id, measurement_id):
    """Replace a measurement in full; omitted fields are cleared"""
    try:
        fields = clean_measurement_form(request.get_json(silent=True))
    except FormValidationError as e:
        return jsonify(format_form_errors(e.errors)), 400

    fields['id'] = measurement_id

    try:
        with customer_backend(current_app, current_user_id()) as store:
            measurement = store.update_measurement(customer_id, fields)
        return jsonify({'success': True, 'measurement': measurement})
    except (CustomerNotFoundError, MeasurementNotFoundError) as e:
        return not_found_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)


# ============================================================================
# ORDERS
# ============================================================================

@customers_bp.route('/api/orders', methods=['GET'])
@login_required
def list_orders():
    """Every measurement as an order row, newest first, filtered by payment tab and search"""
    payment_status = request.args.get('payment_status', ALL_PAYMENT_STATUSES)
    query = request.args.get('search', '')

    try:
        with customer_backend(current_app, current_user_id()) as store:
            orders = store.list_orders()
    except PersistenceError as e:
        return persistence_error_response(e)

    orders = filter_orders(orders, payment_status, query)
    return jsonify({'success': True, 'orders': orders, 'count': len(orders)})


@customers_bp.route('/api/measurement-fields', methods=['GET'])
@login_required
def measurement_fields():
    """Grouped measurement field table"""
    return jsonify({'success': True, 'groups': describe_fields()})
