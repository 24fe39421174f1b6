"""
Utility functions and helpers for geomagnetic field runs.
"""

from .logging import setup_logging
from .time import decimal_year, parse_epoch, to_utc
from .validation import (
    validate_type,
    validate_range,
    validate_vector,
    validate_dict_keys
)

__all__ = [
    'setup_logging',
    'decimal_year',
    'parse_epoch',
    'to_utc',
    'validate_type',
    'validate_range',
    'validate_vector',
    'validate_dict_keys'
]
