"""
Measurement Field Table
Single source of truth for the garment measurement fields, their labels and
display groups, plus the payment and completion status enumerations.
"""
from collections import namedtuple
from typing import Dict, List, Optional

MeasurementField = namedtuple('MeasurementField', ['name', 'label', 'group'])

# Display order of the measurement groups
MEASUREMENT_GROUPS = (
    'Core',
    'Upper Body',
    'Arm',
    'Lower Body',
    'Garment Specific',
)

MEASUREMENT_FIELDS = (
    # Core
    MeasurementField('height', 'Height', 'Core'),
    MeasurementField('neck', 'Neck', 'Core'),
    MeasurementField('chest', 'Chest', 'Core'),
    MeasurementField('waist', 'Waist', 'Core'),
    MeasurementField('hips', 'Hips', 'Core'),
    # Upper Body
    MeasurementField('shoulder', 'Shoulder', 'Upper Body'),
    MeasurementField('neck_width', 'Neck Width', 'Upper Body'),
    MeasurementField('underbust', 'Underbust', 'Upper Body'),
    MeasurementField('nipple_to_nipple', 'Nipple to Nipple', 'Upper Body'),
    MeasurementField('single_shoulder', 'Single Shoulder', 'Upper Body'),
    MeasurementField('front_drop', 'Front Drop', 'Upper Body'),
    MeasurementField('back_drop', 'Back Drop', 'Upper Body'),
    # Arm
    MeasurementField('sleeve_length', 'Sleeve Length', 'Arm'),
    MeasurementField('upperarm_width', 'Upperarm Width', 'Arm'),
    MeasurementField('armhole_curve', 'Armhole Curve', 'Arm'),
    MeasurementField('armhole_curve_straight', 'Armhole Curve (Straight)', 'Arm'),
    MeasurementField('shoulder_to_wrist', 'Shoulder to Wrist', 'Arm'),
    MeasurementField('shoulder_to_elbow', 'Shoulder to Elbow', 'Arm'),
    MeasurementField('inner_arm_length', 'Inner Arm Length', 'Arm'),
    MeasurementField('sleeve_opening', 'Sleeve Opening', 'Arm'),
    MeasurementField('cuff_height', 'Cuff Height', 'Arm'),
    # Lower Body
    MeasurementField('inseam_length', 'Inseam Length', 'Lower Body'),
    MeasurementField('outseam_length', 'Outseam Length', 'Lower Body'),
    MeasurementField('waist_to_knee_length', 'Waist to Knee Length', 'Lower Body'),
    MeasurementField('waist_to_ankle', 'Waist to Ankle', 'Lower Body'),
    MeasurementField('thigh_circ', 'Thigh Circ.', 'Lower Body'),
    MeasurementField('ankle_circ', 'Ankle Circ.', 'Lower Body'),
    MeasurementField('back_rise', 'Back Rise', 'Lower Body'),
    MeasurementField('front_rise', 'Front Rise', 'Lower Body'),
    MeasurementField('leg_opening', 'Leg Opening', 'Lower Body'),
    MeasurementField('seat_length', 'Seat Length', 'Lower Body'),
    # Garment Specific
    MeasurementField('neck_band_width', 'Neck Band Width', 'Garment Specific'),
    MeasurementField('collar_width', 'Collar Width', 'Garment Specific'),
    MeasurementField('collar_point', 'Collar Point', 'Garment Specific'),
    MeasurementField('waist_band', 'Waist Band', 'Garment Specific'),
    MeasurementField('shoulder_to_waist', 'Shoulder to Waist', 'Garment Specific'),
    MeasurementField('shoulder_to_ankle', 'Shoulder to Ankle', 'Garment Specific'),
)

_FIELDS_BY_NAME = {field.name: field for field in MEASUREMENT_FIELDS}

# Job status enumerations
PAYMENT_STATUSES = ('Paid', 'Unpaid', 'Partial')
COMPLETION_STATUSES = ('Pending', 'In Progress', 'Completed')

DEFAULT_PAYMENT_STATUS = 'Unpaid'
DEFAULT_COMPLETION_STATUS = 'Pending'


def field_names() -> List[str]:
    """Names of all measurement fields in display order"""
    return [field.name for field in MEASUREMENT_FIELDS]


def get_field(name: str) -> Optional[MeasurementField]:
    """Look up a measurement field by name"""
    return _FIELDS_BY_NAME.get(name)


def fields_for_group(group: str) -> List[MeasurementField]:
    """
    Get the fields belonging to a display group

    Args:
        group: Group title, e.g. 'Core'

    Returns:
        Fields of that group in display order (empty for an unknown group)
    """
    return [field for field in MEASUREMENT_FIELDS if field.group == group]


def empty_measurement_values() -> Dict[str, None]:
    """A measurement value map with every field unset"""
    return {name: None for name in field_names()}


def describe_fields() -> List[Dict]:
    """
    Serializable description of the field table, grouped for form rendering

    Returns:
        List of {'title', 'fields': [{'name', 'label'}]} in display order
    """
    return [
        {
            'title': group,
            'fields': [
                {'name': field.name, 'label': field.label}
                for field in fields_for_group(group)
            ],
        }
        for group in MEASUREMENT_GROUPS
    ]
