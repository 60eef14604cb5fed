"""
Input Validation & Sanitization Utilities
Validates customer and measurement forms before any store mutation is attempted
"""
import math
import re
from typing import Dict, Any, List, Optional, Tuple
import logging

from measurement_fields import COMPLETION_STATUSES, PAYMENT_STATUSES, field_names
from services.timestamps import parse_timestamp, to_iso

logger = logging.getLogger(__name__)

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?1?\d{9,15}$')

# Contact field constraints
NAME_MIN_LENGTH = 2
NIC_MIN_LENGTH = 10
PHONE_MIN_LENGTH = 10
MAX_TEXT_LENGTH = 255


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


class FormValidationError(ValidationError):
    """Validation failure for a whole form; `errors` maps field name to message"""
    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__(f"Invalid fields: {', '.join(sorted(errors))}")


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None or data[field] == '']

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    return True, None


def validate_phone(phone: str) -> Tuple[bool, Optional[str]]:
    """
    Validate phone number format

    Args:
        phone: Phone number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not phone or not isinstance(phone, str):
        return False, "Phone must be a non-empty string"

    if len(phone) < PHONE_MIN_LENGTH:
        return False, "Phone number is too short"

    # Remove common separators
    cleaned_phone = re.sub(r'[\s\-\(\)\.]', '', phone)

    if not PHONE_PATTERN.match(cleaned_phone):
        return False, "Invalid phone number format"

    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    if len(value) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def validate_number_range(value: float, min_value: Optional[float] = None, max_value: Optional[float] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate number is within acceptable range

    Args:
        value: Number to validate
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, "Value must be a number"

    if min_value is not None and value < min_value:
        return False, f"Value too small (minimum {min_value})"

    if max_value is not None and value > max_value:
        return False, f"Value too large (maximum {max_value})"

    return True, None


def sanitize_string(value: str, max_length: int = 1000) -> str:
    """
    Sanitize string input by removing potentially dangerous characters

    Args:
        value: String to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return str(value)

    # Remove null bytes
    sanitized = value.replace('\x00', '')

    # Trim whitespace
    sanitized = sanitized.strip()

    # Limit length
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def parse_measurement_value(value: Any) -> Tuple[Optional[float], Optional[str]]:
    """
    Parse one measurement field value

    Empty strings and None mean "not measured". Anything else must be a
    finite number that is zero or positive.

    Returns:
        Tuple of (parsed_value, error_message)
    """
    if value is None:
        return None, None

    if isinstance(value, str):
        value = value.strip()
        if value == '':
            return None, None
        try:
            value = float(value)
        except ValueError:
            return None, "Must be a number"

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None, "Must be a number"

    try:
        value = float(value)
    except OverflowError:
        return None, "Must be a finite number"

    if not math.isfinite(value):
        return None, "Must be a finite number"

    is_valid, _ = validate_number_range(value, min_value=0)
    if not is_valid:
        return None, "Must be zero or positive"

    return value, None


def _require_object(data: Any) -> Dict[str, Any]:
    """Treat a missing body as empty; reject anything that is not a JSON object"""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FormValidationError({'form': 'Expected a JSON object'})
    return data


def _clean_text(data: Dict[str, Any], field: str) -> str:
    value = data.get(field)
    if value is None:
        return ''
    return sanitize_string(value, max_length=MAX_TEXT_LENGTH)


def clean_measurement_form(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalize a measurement submission

    Args:
        data: Raw form data; measurement fields, optional payment_status,
            completion_status and date

    Returns:
        Cleaned dict with every measurement field (None when not measured)
        plus the statuses and date when supplied

    Raises:
        FormValidationError: With one message per offending field
    """
    data = _require_object(data)
    errors = {}
    cleaned = {}

    for name in field_names():
        value, error = parse_measurement_value(data.get(name))
        if error:
            errors[name] = error
        cleaned[name] = value

    payment_status = data.get('payment_status')
    if payment_status not in (None, ''):
        if payment_status not in PAYMENT_STATUSES:
            errors['payment_status'] = f"Must be one of: {', '.join(PAYMENT_STATUSES)}"
        else:
            cleaned['payment_status'] = payment_status

    completion_status = data.get('completion_status')
    if completion_status not in (None, ''):
        if completion_status not in COMPLETION_STATUSES:
            errors['completion_status'] = f"Must be one of: {', '.join(COMPLETION_STATUSES)}"
        else:
            cleaned['completion_status'] = completion_status

    if data.get('date'):
        try:
            cleaned['date'] = to_iso(data['date'])
        except (TypeError, ValueError):
            errors['date'] = "Invalid date"

    if errors:
        raise FormValidationError(errors)

    return cleaned


def clean_customer_form(data: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Validate a new-customer submission (contact details plus first measurement)

    Args:
        data: Raw form data

    Returns:
        Tuple of (contact_fields, measurement_fields)

    Raises:
        FormValidationError: With one message per offending field, covering
            both the contact and the measurement parts
    """
    data = _require_object(data)
    errors = {}
    contact = {}

    name = _clean_text(data, 'name')
    if len(name) < NAME_MIN_LENGTH:
        errors['name'] = f"Name must be at least {NAME_MIN_LENGTH} characters."
    contact['name'] = name

    nic = _clean_text(data, 'nic')
    if len(nic) < NIC_MIN_LENGTH:
        errors['nic'] = "Please enter a valid NIC number."
    contact['nic'] = nic

    email = _clean_text(data, 'email')
    is_valid, error = validate_email(email)
    if not is_valid:
        errors['email'] = error
    contact['email'] = email

    phone = _clean_text(data, 'phone')
    is_valid, error = validate_phone(phone)
    if not is_valid:
        errors['phone'] = error
    contact['phone'] = phone

    job_number = _clean_text(data, 'job_number')
    if not job_number:
        errors['job_number'] = "Job number is required."
    contact['job_number'] = job_number

    request_date = data.get('request_date')
    if not request_date:
        errors['request_date'] = "A request date is required."
    else:
        try:
            contact['request_date'] = parse_timestamp(request_date).isoformat()
        except (TypeError, ValueError):
            errors['request_date'] = "Invalid request date."

    measurement = {}
    try:
        measurement = clean_measurement_form(data)
    except FormValidationError as e:
        errors.update(e.errors)
    measurement.pop('date', None)

    if errors:
        logger.info(f"Customer form rejected: {sorted(errors)}")
        raise FormValidationError(errors)

    return contact, measurement


def clean_signup_form(data: Dict[str, Any]) -> Tuple[str, str, str]:
    """
    Validate a signup submission

    Returns:
        Tuple of (name, email, password)

    Raises:
        FormValidationError: If a field is missing or malformed
    """
    data = _require_object(data)
    errors = {}

    is_valid, error = validate_required_fields(data, ['name', 'email', 'password'])
    if not is_valid:
        raise FormValidationError({'form': 'Name, email, and password are required.'})

    name = _clean_text(data, 'name')
    email = _clean_text(data, 'email')
    password = data.get('password')

    is_valid, error = validate_email(email)
    if not is_valid:
        errors['email'] = error

    is_valid, error = validate_string_length(password, min_length=8, max_length=128)
    if not is_valid:
        errors['password'] = f"Invalid password: {error}"

    if errors:
        raise FormValidationError(errors)

    return name, email, password


def format_validation_error(field: str, message: str) -> Dict[str, Any]:
    """
    Format validation error for consistent API responses

    Args:
        field: Field name that failed validation
        message: Error message

    Returns:
        Error response dictionary
    """
    return {
        'success': False,
        'error': 'Validation Error',
        'field': field,
        'message': message
    }


def format_form_errors(errors: Dict[str, str]) -> Dict[str, Any]:
    """Format a field -> message map for an API response"""
    return {
        'success': False,
        'error': 'Validation Error',
        'fields': errors
    }


def format_success_response(data: Any, message: str = "Success") -> Dict[str, Any]:
    """
    Format success response for consistent API responses

    Args:
        data: Response data
        message: Success message

    Returns:
        Success response dictionary
    """
    return {
        'success': True,
        'message': message,
        'data': data
    }
