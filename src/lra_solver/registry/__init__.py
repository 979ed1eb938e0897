"""
Registration-side bookkeeping.

Implements:
- Variable ids, names and the active set
- Canonical left sides deduplicated up to a scalar factor
- Per-column bound aggregation and column types
"""

from .columns import ColumnRegistry

from .canonical import (
    CanonicalLeftSide,
    CanonicalExpressionStore,
    merge_terms,
    normalize_terms,
)

from .bounds import (
    ColumnInfo,
    ColumnType,
    get_column_type,
)

__all__ = [
    # Variables
    "ColumnRegistry",
    # Canonical left sides
    "CanonicalLeftSide",
    "CanonicalExpressionStore",
    "merge_terms",
    "normalize_terms",
    # Bounds
    "ColumnInfo",
    "ColumnType",
    "get_column_type",
]
