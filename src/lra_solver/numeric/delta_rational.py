"""
Infinitesimal-augmented rationals.

A DeltaRational (a, b) stands for a + b·ε where ε is a positive quantity
smaller than any rational we care about. Strict bounds are encoded with it:

    x > c   becomes   x ≥ (c, +1)
    x < c   becomes   x ≤ (c, -1)

The ordering is lexicographic on (a, b), which is exactly the order of
a + b·ε for a sufficiently small ε.
"""

from dataclasses import dataclass
from fractions import Fraction
from typing import Union

Rational = Union[int, Fraction]


@dataclass(frozen=True, order=True)
class DeltaRational:
    """Value ``rational + infinitesimal·ε`` with exact rational parts."""

    rational: Fraction = Fraction(0)
    infinitesimal: Fraction = Fraction(0)

    def __post_init__(self):
        object.__setattr__(self, "rational", Fraction(self.rational))
        object.__setattr__(self, "infinitesimal", Fraction(self.infinitesimal))

    def __add__(self, other: "DeltaRational") -> "DeltaRational":
        if not isinstance(other, DeltaRational):
            return NotImplemented
        return DeltaRational(
            self.rational + other.rational,
            self.infinitesimal + other.infinitesimal,
        )

    def __sub__(self, other: "DeltaRational") -> "DeltaRational":
        if not isinstance(other, DeltaRational):
            return NotImplemented
        return DeltaRational(
            self.rational - other.rational,
            self.infinitesimal - other.infinitesimal,
        )

    def __neg__(self) -> "DeltaRational":
        return DeltaRational(-self.rational, -self.infinitesimal)

    def __mul__(self, scalar: Rational) -> "DeltaRational":
        if isinstance(scalar, DeltaRational):
            # ε² terms are not representable
            return NotImplemented
        return DeltaRational(self.rational * scalar, self.infinitesimal * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: Rational) -> "DeltaRational":
        if isinstance(scalar, DeltaRational):
            return NotImplemented
        return DeltaRational(self.rational / scalar, self.infinitesimal / scalar)

    def is_zero(self) -> bool:
        return self.rational == 0 and self.infinitesimal == 0

    def evaluate(self, delta: Rational) -> Fraction:
        """Substitute a concrete positive ``delta`` for ε."""
        return self.rational + Fraction(delta) * self.infinitesimal

    def __str__(self) -> str:
        if self.infinitesimal == 0:
            return str(self.rational)
        return f"({self.rational}, {self.infinitesimal}ε)"
