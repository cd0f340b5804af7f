"""
Field validators shared by models and serializers.
"""

import re

from django.core.exceptions import ValidationError

PHONE_ALLOWED_CHARS = re.compile(r'^[\d\s\-\+\(\)\.]+$')

# "14:30", "9:05", "2:30 PM", "02:30pm"
BOOKING_TIME_24H = re.compile(r'^(?P<hour>[01]?\d|2[0-3]):(?P<minute>[0-5]\d)$')
BOOKING_TIME_12H = re.compile(r'^(?P<hour>0?[1-9]|1[0-2]):(?P<minute>[0-5]\d)\s?(?P<period>[AaPp][Mm])$')


def validate_phone_number(value):
    """
    Validate a contact phone number.

    Accepts international formats with an optional country code and the usual
    separators (spaces, dashes, dots, parentheses). Requires 10 to 15 digits.

    Valid formats:
    - +1-234-567-8900
    - +44 20 7946 0958
    - (234) 567.8900

    Args:
        value: Phone number string to validate

    Raises:
        ValidationError: If phone number format is invalid
    """
    if not value:  # optional field
        return

    if not PHONE_ALLOWED_CHARS.match(value):
        raise ValidationError(
            'Phone number can only contain digits, spaces, dashes, dots, parentheses, and plus sign.',
            code='invalid_phone_chars'
        )

    if '+' in value[1:]:
        raise ValidationError(
            'The plus sign is only allowed at the start of a phone number.',
            code='invalid_phone_chars'
        )

    digits = re.sub(r'\D', '', value)

    if len(digits) < 10:
        raise ValidationError(
            'Phone number must contain at least 10 digits.',
            code='phone_too_short'
        )

    if len(digits) > 15:
        raise ValidationError(
            'Phone number cannot contain more than 15 digits.',
            code='phone_too_long'
        )

    if len(set(digits)) == 1:
        raise ValidationError(
            'Phone number cannot be all the same digit.',
            code='invalid_phone_pattern'
        )


def normalize_booking_time(value):
    """
    Normalise a booking time to 24-hour ``HH:MM``.

    Args:
        value: Time as typed by the customer, 24-hour or with AM/PM

    Returns:
        str: Time in ``HH:MM`` form

    Raises:
        ValidationError: If the value is not a recognisable time of day
    """
    text = (value or '').strip()

    match = BOOKING_TIME_24H.match(text)
    if match:
        return f"{int(match['hour']):02d}:{match['minute']}"

    match = BOOKING_TIME_12H.match(text)
    if match:
        hour = int(match['hour']) % 12
        if match['period'].lower() == 'pm':
            hour += 12
        return f"{hour:02d}:{match['minute']}"

    raise ValidationError(
        'Booking time must look like "14:30" or "2:30 PM".',
        code='invalid_booking_time'
    )


def normalize_category(value, choices):
    """
    Match a category case-insensitively against the allowed values.

    Args:
        value: Category as submitted ("HVAC", "Plumbing", ...)
        choices: Iterable of allowed stored values

    Returns:
        str: The stored form of the category

    Raises:
        ValidationError: If nothing matches
    """
    candidate = (value or '').strip().lower()
    for choice in choices:
        if candidate == choice.lower():
            return choice
    raise ValidationError(
        f'Invalid category "{value}". Must be one of: {", ".join(choices)}.',
        code='invalid_category'
    )
