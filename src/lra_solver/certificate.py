"""
Farkas certificates for unsatisfiable constraint sets.

Evidence is a list of (weight, constraint_id) pairs. It proves
unsatisfiability when

    (a) every constraint, flipped when its weight is negative, points the
        same way (all ≤-like or all ≥-like; equalities fit either),
    (b) the weighted sum of the original left sides is the zero expression,
    (c) the weighted sum of the right sides contradicts the aggregate
        relation, e.g. 0 ≤ -2 or 0 < 0.

Evidence is built from a row Σ r_j·x_j ≡ 0 over canonical columns. A
positive r_j takes the constraint that supplied column j's upper bound and
a negative one the constraint that supplied its low bound; since that
constraint reads ``scale · L_j  kind  rhs``, its weight is r_j / scale.

The checks below look only at the original constraints, never at the
engine, so they catch mistakes anywhere in normalization or extraction.
"""

from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .constraints import Constraint, ConstraintKind, NormalizedConstraint
from .registry import ColumnInfo, merge_terms

Evidence = List[Tuple[Fraction, int]]


class EvidenceVerificationError(RuntimeError):
    """An infeasibility certificate failed its own check (an internal bug)."""


# =============================================================================
# Extraction
# =============================================================================

def evidence_from_row(
    row: Iterable[Tuple[Fraction, int]],
    infos: Sequence[ColumnInfo],
    normalized: Sequence[NormalizedConstraint],
) -> Evidence:
    """
    Translate a row over canonical left sides into constraint weights.

    Parameters
    ----------
    row : iterable of (weight, left_side_index)
        Oriented as described in the module docstring. A left side may occur
        more than once.
    infos : sequence of ColumnInfo
        Aggregated bounds with their witnesses, indexed by left side.
    normalized : sequence of NormalizedConstraint
        Indexed by constraint id.

    Returns
    -------
    Evidence
        Sorted by constraint id, repeated constraints merged, zero weights
        dropped.
    """
    weights: Dict[int, Fraction] = {}
    for r, left_side in row:
        r = Fraction(r)
        if r == 0:
            continue
        info = infos[left_side]
        witness = info.upper_witness if r > 0 else info.low_witness
        if witness is None:
            raise EvidenceVerificationError(
                f"Left side {left_side} is used with weight {r} but has no "
                f"{'upper' if r > 0 else 'low'} bound"
            )
        scale = normalized[witness].scale
        weights[witness] = weights.get(witness, Fraction(0)) + r / scale
    return [(w, ci) for ci, w in sorted(weights.items()) if w != 0]


def evidence_for_bound_conflict(
    left_side: int,
    infos: Sequence[ColumnInfo],
    normalized: Sequence[NormalizedConstraint],
) -> Evidence:
    """Evidence for a column whose aggregated low bound exceeds its upper bound."""
    return evidence_from_row(
        [(Fraction(1), left_side), (Fraction(-1), left_side)], infos, normalized,
    )


def evidence_for_degenerate_constraint(constraint: Constraint) -> Evidence:
    """Evidence for a contradictory constraint whose left side is identically zero."""
    kind = constraint.kind
    if kind is ConstraintKind.EQ:
        weight = Fraction(-1) if constraint.rhs > 0 else Fraction(1)
    elif kind.is_upper:
        weight = Fraction(1)
    else:
        weight = Fraction(-1)
    return [(weight, constraint.index)]


# =============================================================================
# Verification
# =============================================================================

def the_relations_are_of_same_type(
    evidence: Evidence,
    constraints: Sequence[Constraint],
) -> Optional[ConstraintKind]:
    """
    Aggregate relation of the weighted sum, or None if directions disagree.

    Returns LE/LT when every oriented constraint is ≤-like, GE/GT when every
    one is ≥-like (the strict variant when any strict constraint takes
    part), and EQ when all are equalities.
    """
    upper_like = low_like = strict = False
    for weight, ci in evidence:
        if weight == 0:
            return None
        kind = constraints[ci].kind
        if weight < 0:
            kind = kind.flipped()
        if kind is ConstraintKind.EQ:
            continue
        strict = strict or kind.is_strict
        if kind.is_upper:
            upper_like = True
        else:
            low_like = True
    if upper_like and low_like:
        return None
    if upper_like:
        return ConstraintKind.LT if strict else ConstraintKind.LE
    if low_like:
        return ConstraintKind.GT if strict else ConstraintKind.GE
    return ConstraintKind.EQ


def the_left_sides_sum_to_zero(
    evidence: Evidence,
    constraints: Sequence[Constraint],
) -> bool:
    terms = []
    for weight, ci in evidence:
        terms.extend((weight * coeff, var) for coeff, var in constraints[ci].terms)
    return not merge_terms(terms)


def sum_of_right_sides_of_evidence(
    evidence: Evidence,
    constraints: Sequence[Constraint],
) -> Fraction:
    return sum((weight * constraints[ci].rhs for weight, ci in evidence), Fraction(0))


def the_right_sides_do_not_sum_to_zero(
    evidence: Evidence,
    constraints: Sequence[Constraint],
    kind: Optional[ConstraintKind] = None,
) -> bool:
    """True when ``0 kind Σ w·rhs`` is false, i.e. the sum is contradictory."""
    if kind is None:
        kind = the_relations_are_of_same_type(evidence, constraints)
        if kind is None:
            return False
    total = sum_of_right_sides_of_evidence(evidence, constraints)
    return not kind.holds(Fraction(0), total)


def the_evidence_is_correct(
    evidence: Evidence,
    constraints: Sequence[Constraint],
) -> bool:
    """Check (a), (b) and (c) from the module docstring."""
    if not evidence:
        return False
    kind = the_relations_are_of_same_type(evidence, constraints)
    if kind is None:
        return False
    if not the_left_sides_sum_to_zero(evidence, constraints):
        return False
    return the_right_sides_do_not_sum_to_zero(evidence, constraints, kind)
