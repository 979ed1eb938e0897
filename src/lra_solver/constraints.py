"""
User-level and normalized linear constraints.

A user constraint is ``Σ coeff·var  kind  rhs``. Registration rewrites it
against a canonical left side L with ``original_lhs = scale · L``, giving a
normalized constraint ``L  kind'  rhs / scale`` where kind' is kind flipped
when the scale is negative.
"""

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Tuple


class ConstraintKind(Enum):
    """Relation between a left side and a right-hand side."""

    LE = "<="
    LT = "<"
    GE = ">="
    GT = ">"
    EQ = "="

    @property
    def is_strict(self) -> bool:
        return self in (ConstraintKind.LT, ConstraintKind.GT)

    @property
    def is_upper(self) -> bool:
        """True for ≤ and <, which bound the left side from above."""
        return self in (ConstraintKind.LE, ConstraintKind.LT)

    @property
    def is_low(self) -> bool:
        """True for ≥ and >, which bound the left side from below."""
        return self in (ConstraintKind.GE, ConstraintKind.GT)

    def flipped(self) -> "ConstraintKind":
        """Relation obtained after multiplying both sides by a negative number."""
        return _FLIPPED[self]

    def holds(self, lhs: Fraction, rhs: Fraction) -> bool:
        if self is ConstraintKind.LE:
            return lhs <= rhs
        if self is ConstraintKind.LT:
            return lhs < rhs
        if self is ConstraintKind.GE:
            return lhs >= rhs
        if self is ConstraintKind.GT:
            return lhs > rhs
        return lhs == rhs


_FLIPPED = {
    ConstraintKind.LE: ConstraintKind.GE,
    ConstraintKind.LT: ConstraintKind.GT,
    ConstraintKind.GE: ConstraintKind.LE,
    ConstraintKind.GT: ConstraintKind.LT,
    ConstraintKind.EQ: ConstraintKind.EQ,
}


Term = Tuple[Fraction, int]
"""A (coefficient, var_id) pair."""


@dataclass(frozen=True)
class Constraint:
    """A constraint exactly as the caller supplied it."""
    index: int
    terms: Tuple[Term, ...]
    kind: ConstraintKind
    rhs: Fraction


@dataclass(frozen=True)
class NormalizedConstraint:
    """
    A constraint restated against its canonical left side.

    Attributes
    ----------
    constraint : int
        Index of the original constraint.
    left_side : int
        Arena index of the canonical left side, or -1 when every coefficient
        of the original constraint cancelled out.
    scale : Fraction
        Nonzero factor with ``original_lhs = scale · canonical_lhs``.
    kind : ConstraintKind
        Relation against the canonical left side.
    rhs : Fraction
        Right-hand side against the canonical left side.
    """
    constraint: int
    left_side: int
    scale: Fraction
    kind: ConstraintKind
    rhs: Fraction

    @property
    def is_degenerate(self) -> bool:
        return self.left_side < 0


def normalize_constraint(
    constraint: Constraint,
    left_side: int,
    scale: Fraction,
) -> NormalizedConstraint:
    """Rewrite ``constraint`` against a canonical left side reached by ``scale``."""
    if scale == 0:
        raise ValueError("Normalization scale must be nonzero")
    kind = constraint.kind if scale > 0 else constraint.kind.flipped()
    return NormalizedConstraint(
        constraint=constraint.index,
        left_side=left_side,
        scale=scale,
        kind=kind,
        rhs=constraint.rhs / scale,
    )


def format_terms(terms, name_of) -> str:
    """Human-readable ``2*x + -1/2*y`` rendering of (coeff, var) terms."""
    parts = []
    for coeff, var in terms:
        name = name_of(var)
        if coeff == 1:
            parts.append(name)
        else:
            parts.append(f"{coeff}*{name}")
    if not parts:
        return "0"
    return " + ".join(parts)
