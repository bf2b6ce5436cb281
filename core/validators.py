"""
Field validators for accounts and listings.
"""

import re

from django.core.exceptions import ValidationError
from django.utils import timezone

# Earliest model year accepted for a listed coach
MIN_LISTING_YEAR = 1950


def validate_phone_number(value):
    """
    Validate phone number format.

    Accepts digits with optional country code, spaces, dashes, dots and
    parentheses. Requires at least 10 digits.

    Raises:
        ValidationError: If phone number format is invalid
    """
    if not value:  # optional field
        return

    if not re.match(r'^[\d\s\-\+\(\)\.]+$', value):
        raise ValidationError(
            'Phone number can only contain digits, spaces, dashes, dots, parentheses, and plus sign.',
            code='invalid_phone_chars'
        )

    digits = re.sub(r'\D', '', value)
    if len(digits) < 10:
        raise ValidationError(
            'Phone number must contain at least 10 digits.',
            code='phone_too_short'
        )


def validate_listing_year(value):
    """
    Validate a coach model year.

    Coaches are listed a year ahead of the calendar at most.

    Raises:
        ValidationError: If the year is outside the accepted range
    """
    if value is None:
        return

    latest = timezone.now().year + 1
    if value < MIN_LISTING_YEAR or value > latest:
        raise ValidationError(
            f'Year must be between {MIN_LISTING_YEAR} and {latest}.',
            code='invalid_year'
        )
