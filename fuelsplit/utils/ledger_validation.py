"""Ledger errors and input validation utilities."""
import math
from numbers import Real
from typing import Union

Number = Union[int, float]

# Distances are kept to the metre
METRES_PER_KM = 1000


class LedgerError(Exception):
    """Base exception for ledger operations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidReading(LedgerError):
    """Odometer value is negative, non-finite, or lower than the last reading."""
    pass


class NothingToUndo(LedgerError):
    """There is no mileage entry left to undo."""
    pass


class InvalidSettings(LedgerError):
    """Non-positive price per km or negative starting odometer."""
    pass


class UnknownParticipant(LedgerError):
    """Submitting user is not one of the two configured participants."""
    pass


class StoreUnavailable(LedgerError):
    """The ledger store could not be read or written."""
    pass


def normalize_number(value: Number) -> Number:
    """Return integral floats as int so 180.0 is stored and shown as 180."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def to_metres(km: Number) -> int:
    return round(km * METRES_PER_KM)


def from_metres(metres: int) -> Number:
    return normalize_number(metres / METRES_PER_KM)


def add_km(*values: Number) -> Number:
    """Sum distances in whole metres so that adding then subtracting is exact."""
    return from_metres(sum(to_metres(value) for value in values))


def _is_finite_number(value) -> bool:
    # bool is a Real subclass but never a valid quantity
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    try:
        return math.isfinite(value * METRES_PER_KM)
    except OverflowError:
        return False


def validate_reading(reading: Number) -> Number:
    """
    Validate an odometer reading.

    Rules:
    - must be a finite number
    - must be >= 0
    - kept to the metre
    """
    if not _is_finite_number(reading) or reading < 0:
        raise InvalidReading("Please enter a valid mileage (km).")
    return from_metres(to_metres(reading))


def validate_settings(price_per_km: Number, starting_odometer: Number) -> tuple:
    """
    Validate settings values.

    Rules:
    - price_per_km must be a finite number > 0
    - starting_odometer must be a finite number >= 0
    """
    if not _is_finite_number(price_per_km) or price_per_km <= 0:
        raise InvalidSettings("Price per km must be greater than 0.")
    if not _is_finite_number(starting_odometer) or starting_odometer < 0:
        raise InvalidSettings("Starting mileage must be >= 0.")
    return float(price_per_km), from_metres(to_metres(starting_odometer))
