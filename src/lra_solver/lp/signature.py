"""
Solution signatures: where each non-basic column rested in a prior solve.

The approximate pass only contributes a signature to the exact pass. It is
a placement hint for the starting point and is never trusted for the
answer; any column it does not describe falls back to its low bound, then
its upper bound, then zero.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .assembler import CoreProblem
from .simplex import EngineResult, EngineStatus


class NonBasicPosition(Enum):
    LOW = "low"
    UPPER = "upper"
    ZERO = "zero"


@dataclass
class SolutionSignature:
    """Problem column -> bound the column rested on."""
    positions: Dict[int, NonBasicPosition] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.positions)

    def get(self, j: int) -> Optional[NonBasicPosition]:
        return self.positions.get(j)


def extract_signature(result: EngineResult, problem: CoreProblem) -> SolutionSignature:
    """
    Read the resting position of every non-basic column of a finished run.

    Engines that expose no basis have all their columns inspected. Columns
    strictly inside their bounds are left out, as is everything when the run
    did not end feasible.
    """
    signature = SolutionSignature()
    if result.status is not EngineStatus.FEASIBLE or result.x is None:
        return signature

    fld = problem.field
    basic = set(result.basis) if result.basis is not None else set()
    for j in range(problem.n_columns):
        if j in basic:
            continue
        value = result.x[j]
        low, upper = problem.low[j], problem.upper[j]
        if low is not None and fld.equal(value, low):
            signature.positions[j] = NonBasicPosition.LOW
        elif upper is not None and fld.equal(value, upper):
            signature.positions[j] = NonBasicPosition.UPPER
        elif low is None and upper is None and fld.is_zero(value):
            signature.positions[j] = NonBasicPosition.ZERO
    return signature


def get_column_val(problem: CoreProblem, position: NonBasicPosition, j: int):
    """Value of column ``j`` at ``position``, or None if it has no such bound."""
    if position is NonBasicPosition.LOW:
        return problem.low[j]
    if position is NonBasicPosition.UPPER:
        return problem.upper[j]
    if problem.low[j] is None and problem.upper[j] is None:
        return problem.field.zero
    return None


def initial_nonbasic_values(
    problem: CoreProblem,
    signature: SolutionSignature,
) -> Dict[int, Any]:
    """Starting value of every initially non-basic column of ``problem``."""
    basic = set(problem.basis)
    values = {}
    for j in range(problem.n_columns):
        if j in basic:
            continue
        position = signature.get(j)
        value = None if position is None else get_column_val(problem, position, j)
        values[j] = problem.default_value(j) if value is None else value
    return values
