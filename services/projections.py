"""
Read-only projections over customer data for the list and detail views.
All functions are pure: (collection, filter parameters) -> ordered rows.
"""

from typing import Dict, Iterable, List, Optional

from measurement_fields import MEASUREMENT_GROUPS, fields_for_group
from services.timestamps import parse_timestamp

ALL_PAYMENT_STATUSES = 'All'


def _contains(value: Optional[str], needle: str) -> bool:
    return needle in (value or '').lower()


def search_customers(customers: Iterable[Dict], query: Optional[str]) -> List[Dict]:
    """
    Filter customers by free text on name or NIC number.

    Matching is a case-insensitive substring test. A blank query returns the
    whole collection.
    """
    customers = list(customers)
    needle = (query or '').strip().lower()
    if not needle:
        return customers
    return [
        c for c in customers
        if _contains(c.get('name'), needle) or _contains(c.get('nic'), needle)
    ]


def build_orders(customers: Iterable[Dict]) -> List[Dict]:
    """Flatten every (customer, measurement) pair into an order row, newest first."""
    orders = []
    for customer in customers:
        for measurement in customer.get('measurements') or []:
            orders.append({
                'customer_id': customer['id'],
                'customer_name': customer.get('name'),
                'customer_email': customer.get('email'),
                'nic': customer.get('nic'),
                'job_number': customer.get('job_number'),
                'measurement_id': measurement['id'],
                'measurement_date': measurement['date'],
                'payment_status': measurement.get('payment_status'),
                'completion_status': measurement.get('completion_status'),
            })
    orders.sort(key=lambda o: parse_timestamp(o['measurement_date']), reverse=True)
    return orders


def filter_orders(orders: Iterable[Dict], payment_status: Optional[str] = ALL_PAYMENT_STATUSES,
                  query: Optional[str] = '') -> List[Dict]:
    """
    Filter order rows by payment-status tab AND search text.

    Args:
        orders: Order rows from build_orders
        payment_status: 'All' (or empty) disables the tab filter
        query: Case-insensitive text matched against customer name, job
            number or NIC number

    Returns:
        Rows satisfying both filters, in their original order
    """
    needle = (query or '').strip().lower()
    result = []
    for order in orders:
        if payment_status and payment_status != ALL_PAYMENT_STATUSES:
            if order.get('payment_status') != payment_status:
                continue
        if needle and not (
            _contains(order.get('customer_name'), needle)
            or _contains(order.get('job_number'), needle)
            or _contains(order.get('nic'), needle)
        ):
            continue
        result.append(order)
    return result


def has_value(value) -> bool:
    """A measurement value is shown only when set and non-zero."""
    return value is not None and value != 0


def measurement_groups(measurement: Dict) -> List[Dict]:
    """
    Group a measurement's values into display cards.

    Fields that are None or 0 are dropped, and a group left without fields is
    dropped entirely.
    """
    groups = []
    for group in MEASUREMENT_GROUPS:
        fields = [
            {'name': field.name, 'label': field.label, 'value': measurement.get(field.name)}
            for field in fields_for_group(group)
            if has_value(measurement.get(field.name))
        ]
        if fields:
            groups.append({'title': group, 'fields': fields})
    return groups


def customer_summary(customer: Dict) -> Dict:
    """Row for the customer list: contact fields plus measurement count and latest date."""
    measurements = customer.get('measurements') or []
    latest = measurements[0]['date'] if measurements else None
    return {
        'id': customer['id'],
        'name': customer.get('name'),
        'email': customer.get('email'),
        'phone': customer.get('phone'),
        'nic': customer.get('nic'),
        'job_number': customer.get('job_number'),
        'request_date': customer.get('request_date'),
        'measurement_count': len(measurements),
        'latest_measurement_date': latest,
    }
