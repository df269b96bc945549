"""Field-level checks shared by the row parsers.

Every check returns ``None`` when the value is acceptable, or the message to
report for the row otherwise.
"""

from __future__ import annotations

import math

ALTITUDE_MIN_VALUE = 0
ALTITUDE_MAX_VALUE = 65535
LATITUDE_BOUND = 90
LONGITUDE_BOUND = 180


def _to_number(value: str) -> float | None:
    # float() accepts digit separators, plain decimal input does not
    if "_" in value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def check_required(value: str, field_name: str) -> str | None:
    return None if value else f"The {field_name} must not be empty"


def check_max_length(value: str, field_name: str, max_length: int) -> str | None:
    if len(value) > max_length:
        return f"The {field_name} must not be longer than {max_length} characters"
    return None


def check_altitude(value: str) -> str | None:
    if not value:
        return "The altitude must not be empty"

    altitude = _to_number(value)
    if altitude is None or not altitude.is_integer():
        return "The altitude must be an integer"

    if not ALTITUDE_MIN_VALUE <= altitude <= ALTITUDE_MAX_VALUE:
        return (
            f"The altitude must be an integer between {ALTITUDE_MIN_VALUE} "
            f"and {ALTITUDE_MAX_VALUE}"
        )
    return None


def check_latitude(value: str) -> str | None:
    if not value:
        return "The latitude must not be empty"

    latitude = _to_number(value)
    if latitude is None or not -LATITUDE_BOUND <= latitude <= LATITUDE_BOUND:
        return f"The latitude must be a number between -{LATITUDE_BOUND} and {LATITUDE_BOUND}"
    return None


def check_longitude(value: str) -> str | None:
    if not value:
        return "The longitude must not be empty"

    longitude = _to_number(value)
    if longitude is None or not -LONGITUDE_BOUND <= longitude <= LONGITUDE_BOUND:
        return (
            f"The longitude must be a number between -{LONGITUDE_BOUND} "
            f"and {LONGITUDE_BOUND}"
        )
    return None


def first_error(*errors: str | None) -> str | None:
    return next((error for error in errors if error), None)
