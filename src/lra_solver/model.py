"""
Concrete models from infinitesimal-augmented solutions.

The exact pass ends with every column at some value a + b·ε. Choosing a
concrete δ > 0 for ε keeps all bounds satisfied as long as, for each bound
the column's value respects lexicographically, the rational gap is not
overtaken by the infinitesimal gap:

    (a_gap) + δ·(b_gap) ≥ 0

which only restricts δ when a_gap > 0 and b_gap < 0. Strict bounds carry
±1 in their infinitesimal part, so the same inequality keeps them strict.
"""

from fractions import Fraction
from typing import Optional, Sequence

from .numeric import DeltaRational


def _restrict(delta: Fraction, gap: DeltaRational) -> Fraction:
    if gap.rational > 0 and gap.infinitesimal < 0:
        limit = gap.rational / -gap.infinitesimal
        if limit < delta:
            return limit
    return delta


def restrict_delta_on_low_bound_column(
    delta: Fraction,
    value: DeltaRational,
    low: DeltaRational,
) -> Fraction:
    """Largest δ ≤ ``delta`` keeping ``value`` above ``low``."""
    return _restrict(delta, value - low)


def restrict_delta_on_upper_bound(
    delta: Fraction,
    value: DeltaRational,
    upper: DeltaRational,
) -> Fraction:
    """Largest δ ≤ ``delta`` keeping ``value`` below ``upper``."""
    return _restrict(delta, upper - value)


def find_delta_for_strict_bounds(
    x: Sequence[DeltaRational],
    low: Sequence[Optional[DeltaRational]],
    upper: Sequence[Optional[DeltaRational]],
) -> Fraction:
    """
    A positive δ under which every column keeps its bounds.

    Parameters
    ----------
    x : sequence of DeltaRational
        Column values of a feasible exact solve.
    low, upper : sequence of DeltaRational or None
        Column bounds in the exact representation.

    Returns
    -------
    Fraction
        Half of the tightest restriction, or 1/2 when nothing restricts δ.
    """
    delta = Fraction(1)
    for j, value in enumerate(x):
        if low[j] is not None:
            delta = restrict_delta_on_low_bound_column(delta, value, low[j])
        if upper[j] is not None:
            delta = restrict_delta_on_upper_bound(delta, value, upper[j])
    return delta / 2
