"""
Bound aggregation per internal column.

Every normalized constraint touching a canonical left side tightens that
column's bounds:

    L ≤ c, L < c   ->  upper bound
    L ≥ c, L > c   ->  low bound
    L = c          ->  both

Merging is commutative and associative: the low bound is the running
maximum and the upper bound the running minimum, and on equal values the
strict bound wins. The aggregated bounds therefore do not depend on the
order constraints arrive in; only the witness of a tie between two equal
non-strict bounds can differ.
"""

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Optional

from ..constraints import ConstraintKind, NormalizedConstraint


class ColumnType(Enum):
    FREE = "free"
    LOW_BOUND = "low_bound"
    UPPER_BOUND = "upper_bound"
    BOXED = "boxed"
    FIXED = "fixed"


@dataclass
class ColumnInfo:
    """
    Aggregated bounds of one internal column.

    The witnesses are the indices of the original constraints that supplied
    the current low and upper bounds; certificates are built from them.
    """
    low: Optional[Fraction] = None
    upper: Optional[Fraction] = None
    low_is_strict: bool = False
    upper_is_strict: bool = False
    low_witness: Optional[int] = None
    upper_witness: Optional[int] = None

    @property
    def has_low(self) -> bool:
        return self.low is not None

    @property
    def has_upper(self) -> bool:
        return self.upper is not None

    @property
    def is_fixed(self) -> bool:
        return (
            self.has_low and self.has_upper
            and self.low == self.upper
            and not self.low_is_strict and not self.upper_is_strict
        )

    def is_infeasible(self) -> bool:
        """True when no value satisfies both bounds."""
        if not (self.has_low and self.has_upper):
            return False
        if self.low > self.upper:
            return True
        return self.low == self.upper and (self.low_is_strict or self.upper_is_strict)

    def merge_low(self, value: Fraction, strict: bool, witness: int) -> bool:
        """Tighten the low bound; returns True if it changed."""
        if (
            self.low is None
            or value > self.low
            or (value == self.low and strict and not self.low_is_strict)
        ):
            self.low = value
            self.low_is_strict = strict
            self.low_witness = witness
            return True
        return False

    def merge_upper(self, value: Fraction, strict: bool, witness: int) -> bool:
        """Tighten the upper bound; returns True if it changed."""
        if (
            self.upper is None
            or value < self.upper
            or (value == self.upper and strict and not self.upper_is_strict)
        ):
            self.upper = value
            self.upper_is_strict = strict
            self.upper_witness = witness
            return True
        return False

    def merge(self, norm: NormalizedConstraint) -> None:
        """Fold one normalized constraint into the bounds."""
        kind = norm.kind
        if kind is ConstraintKind.EQ:
            self.merge_low(norm.rhs, False, norm.constraint)
            self.merge_upper(norm.rhs, False, norm.constraint)
        elif kind.is_low:
            self.merge_low(norm.rhs, kind.is_strict, norm.constraint)
        else:
            self.merge_upper(norm.rhs, kind.is_strict, norm.constraint)

    def __str__(self) -> str:
        low = "-inf" if self.low is None else str(self.low)
        upper = "+inf" if self.upper is None else str(self.upper)
        left = "(" if self.low is None or self.low_is_strict else "["
        right = ")" if self.upper is None or self.upper_is_strict else "]"
        return f"{left}{low}, {upper}{right}"


def get_column_type(info: ColumnInfo) -> ColumnType:
    """Classify a column by which of its bounds are present."""
    if info.has_low and info.has_upper:
        return ColumnType.FIXED if info.is_fixed else ColumnType.BOXED
    if info.has_low:
        return ColumnType.LOW_BOUND
    if info.has_upper:
        return ColumnType.UPPER_BOUND
    return ColumnType.FREE
