"""
Numeric representations.

Implements:
- DeltaRational: exact rationals augmented with an infinitesimal part
- NumericField: the value abstraction shared by the approximate and exact passes
"""

from .delta_rational import DeltaRational

from .fields import (
    NumericField,
    DOUBLE_FIELD,
    EXACT_FIELD,
    extended_field,
    field_for_precision,
)

__all__ = [
    "DeltaRational",
    "NumericField",
    "DOUBLE_FIELD",
    "EXACT_FIELD",
    "extended_field",
    "field_for_precision",
]
