"""
Canonical expression store.

Linear expressions are deduplicated up to a nonzero scalar factor. The
normal form of ``Σ a_i·x_i`` is obtained by

    1. merging repeated variables and dropping zero coefficients,
    2. sorting terms by variable id,
    3. dividing every coefficient by the one of the lowest variable id.

So ``2x + 4y`` and ``-x - 2y`` both normalize to ``x + 2y`` with scales 2
and -1. Each distinct normal form owns one internal column; a single
variable ``x`` normalizes to the trivial side ``x`` that add_var created.

Left sides live in an append-only arena and are referred to by their arena
index everywhere else.
"""

from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Tuple

CanonicalKey = Tuple[Tuple[int, Fraction], ...]


def merge_terms(terms: Iterable[Tuple[Fraction, int]]) -> Dict[int, Fraction]:
    """Sum coefficients per variable and drop the ones that cancel."""
    merged: Dict[int, Fraction] = {}
    for coeff, var in terms:
        merged[var] = merged.get(var, Fraction(0)) + Fraction(coeff)
    return {var: coeff for var, coeff in merged.items() if coeff != 0}


def normalize_terms(
    terms: Iterable[Tuple[Fraction, int]],
) -> Tuple[CanonicalKey, Fraction]:
    """
    Compute the normal form of a linear expression.

    Parameters
    ----------
    terms : iterable of (coefficient, var_id)
        The expression, in any order, possibly with repeated variables.

    Returns
    -------
    key : tuple of (var_id, Fraction)
        Terms sorted by variable id with leading coefficient 1. Empty when
        every coefficient cancels.
    scale : Fraction
        Coefficient of the leading term, so that
        ``expression = scale · key``. 1 for the empty expression.
    """
    merged = merge_terms(terms)
    if not merged:
        return (), Fraction(1)
    ordered = sorted(merged.items())
    scale = ordered[0][1]
    key = tuple((var, coeff / scale) for var, coeff in ordered)
    return key, scale


@dataclass(frozen=True)
class CanonicalLeftSide:
    """One deduplicated expression and therefore one internal column."""

    index: int
    """Position in the store arena."""

    key: CanonicalKey
    """Normalized (var_id, coefficient) terms."""

    @property
    def is_trivial(self) -> bool:
        return len(self.key) == 1

    @property
    def var(self) -> Optional[int]:
        """The variable of a trivial side, else None."""
        return self.key[0][0] if self.is_trivial else None

    @property
    def terms(self) -> List[Tuple[Fraction, int]]:
        return [(coeff, var) for var, coeff in self.key]

    def value(self, var_values: Dict[int, Fraction]) -> Fraction:
        return sum(
            (coeff * var_values.get(var, Fraction(0)) for var, coeff in self.key),
            Fraction(0),
        )


class CanonicalExpressionStore:
    """Append-only arena of canonical left sides keyed by their normal form."""

    def __init__(self):
        self._arena: List[CanonicalLeftSide] = []
        self._by_key: Dict[CanonicalKey, int] = {}

    def __len__(self) -> int:
        return len(self._arena)

    def __iter__(self):
        return iter(self._arena)

    def __getitem__(self, index: int) -> CanonicalLeftSide:
        return self._arena[index]

    def add_trivial(self, var: int) -> CanonicalLeftSide:
        """Left side ``var`` itself, so plain bounds share the aggregation path."""
        left_side, _ = self.create_or_fetch_existing_left_side([(Fraction(1), var)])
        return left_side

    def create_or_fetch_existing_left_side(
        self,
        terms: Iterable[Tuple[Fraction, int]],
    ) -> Tuple[Optional[CanonicalLeftSide], Fraction]:
        """
        Look up the canonical side of ``terms``, inserting it when new.

        Returns
        -------
        left_side : CanonicalLeftSide or None
            None when every coefficient cancels.
        scale : Fraction
            Nonzero factor with ``expression = scale · left_side``.
        """
        key, scale = normalize_terms(terms)
        if not key:
            return None, scale
        index = self._by_key.get(key)
        if index is None:
            index = len(self._arena)
            self._arena.append(CanonicalLeftSide(index=index, key=key))
            self._by_key[key] = index
        return self._arena[index], scale

    def find(self, terms: Iterable[Tuple[Fraction, int]]) -> Optional[CanonicalLeftSide]:
        key, _ = normalize_terms(terms)
        index = self._by_key.get(key)
        return None if index is None else self._arena[index]
