"""
Numeric representations the assembler and the simplex engine run over.

A NumericField bundles everything representation-specific:

    - how an exact matrix coefficient is converted (``coefficient``)
    - how an exact (value, strict) bound is converted
      (``low_bound`` / ``upper_bound``)
    - how values compare (exactly, or within ``tolerance``)

The rest of the solver is written once against this record and instantiated
with DOUBLE_FIELD or extended_field(dps) for the approximate pass, and with
EXACT_FIELD for the authoritative pass.
"""

from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Callable, Optional

from mpmath import mpf

from ..config import MPMATH_MIN_PRECISION
from .delta_rational import DeltaRational


@dataclass(frozen=True)
class NumericField:
    """One numeric representation of coefficients and column values."""

    name: str
    """Short identifier used in diagnostics."""

    zero: Any
    """Additive identity of the value type."""

    coefficient: Callable[[Fraction], Any]
    """Convert an exact matrix coefficient."""

    low_bound: Callable[[Fraction, bool], Any]
    """Convert an exact low bound and its strictness flag."""

    upper_bound: Callable[[Fraction, bool], Any]
    """Convert an exact upper bound and its strictness flag."""

    tolerance: Optional[float] = None
    """Absolute comparison tolerance; None means exact comparisons."""

    dps: Optional[int] = None
    """mpmath decimal digits the values need, if mpmath-backed."""

    @property
    def is_exact(self) -> bool:
        return self.tolerance is None

    def is_zero(self, v) -> bool:
        if self.is_exact:
            return v == 0 if not isinstance(v, DeltaRational) else v.is_zero()
        return abs(v) <= self.tolerance

    def is_positive(self, v) -> bool:
        if self.is_exact:
            return v > self.zero if isinstance(v, DeltaRational) else v > 0
        return v > self.tolerance

    def is_negative(self, v) -> bool:
        if self.is_exact:
            return v < self.zero if isinstance(v, DeltaRational) else v < 0
        return v < -self.tolerance

    def less(self, a, b) -> bool:
        if self.is_exact:
            return a < b
        return a < b - self.tolerance

    def greater(self, a, b) -> bool:
        if self.is_exact:
            return a > b
        return a > b + self.tolerance

    def equal(self, a, b) -> bool:
        return not self.less(a, b) and not self.greater(a, b)


# =============================================================================
# Approximate representations (strictness is dropped)
# =============================================================================

def _float_bound(value: Fraction, strict: bool) -> float:
    return float(value)


DOUBLE_FIELD = NumericField(
    name="double",
    zero=0.0,
    coefficient=float,
    low_bound=_float_bound,
    upper_bound=_float_bound,
    tolerance=1e-9,
)


def _to_mpf(value: Fraction) -> mpf:
    return mpf(value.numerator) / value.denominator


def extended_field(dps: int) -> NumericField:
    """
    Extended-precision approximate representation backed by mpmath.

    Values are created at whatever ``mp.dps`` is active when they are
    converted, so callers should run the whole pass with ``mp.dps = dps``.

    Parameters
    ----------
    dps : int
        Decimal digits of working precision.

    Returns
    -------
    NumericField
    """
    if dps < MPMATH_MIN_PRECISION:
        raise ValueError(
            f"Extended precision needs at least {MPMATH_MIN_PRECISION} digits, got {dps}"
        )
    return NumericField(
        name=f"mpf{dps}",
        zero=mpf(0),
        coefficient=_to_mpf,
        low_bound=lambda value, strict: _to_mpf(value),
        upper_bound=lambda value, strict: _to_mpf(value),
        tolerance=float(mpf(10) ** (-(dps - 5))),
        dps=dps,
    )


# =============================================================================
# Exact representation
# =============================================================================

def _exact_low_bound(value: Fraction, strict: bool) -> DeltaRational:
    # x > c sits infinitesimally above c
    return DeltaRational(value, 1 if strict else 0)


def _exact_upper_bound(value: Fraction, strict: bool) -> DeltaRational:
    # x < c sits infinitesimally below c
    return DeltaRational(value, -1 if strict else 0)


EXACT_FIELD = NumericField(
    name="exact",
    zero=DeltaRational(0, 0),
    coefficient=Fraction,
    low_bound=_exact_low_bound,
    upper_bound=_exact_upper_bound,
    tolerance=None,
)


def field_for_precision(precision: Optional[int]) -> NumericField:
    """Approximate field for a settings precision (None means float64)."""
    if precision is None:
        return DOUBLE_FIELD
    return extended_field(precision)
