"""
Bounded-variable simplex over an arbitrary NumericField.

Feasibility-only primal simplex in tableau form: every basic column is
kept as a linear combination of the non-basic ones, non-basic columns
always sit within their bounds, and basic columns are repaired one at a
time until all bounds hold or a row proves that they cannot.

Architecture:
    - Initial basis: the slack column of each row
    - Repair loop with Bland's rule (lowest-indexed violated basic column,
      lowest-indexed non-basic column able to move it), which terminates
    - Infeasibility reported as a row of the tableau together with the
      direction of the violated bound

The same code runs with float64, mpmath and exact DeltaRational values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..config import MAX_ITERATIONS
from .assembler import CoreProblem


# =============================================================================
# Engine results
# =============================================================================

class EngineStatus(Enum):
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    ITERATION_LIMIT = "iteration_limit"
    UNKNOWN = "unknown"


@dataclass
class EngineResult:
    """
    Outcome of one engine run.

    Attributes
    ----------
    status : EngineStatus
    x : list or None
        Value of every column when the run ended.
    basis : list of int or None
        Basic columns, or None for engines that do not expose a basis.
    infeasible_row : list of (coefficient, column) or None
        On INFEASIBLE: weights r_j with Σ r_j·x_j ≡ 0 over the rows, oriented
        so that each r_j·x_j is bounded above by r_j times the upper bound of
        column j when r_j > 0 (low bound when r_j < 0), and the sum of those
        bounds is negative.
    infeasible_sign : int
        +1 when the offending basic column was below its low bound,
        -1 when above its upper bound, 0 otherwise.
    iterations : int
        Number of pivots performed.
    """
    status: EngineStatus
    x: Optional[List[Any]] = None
    basis: Optional[List[int]] = None
    infeasible_row: Optional[List[Tuple[Any, int]]] = None
    infeasible_sign: int = 0
    iterations: int = 0
    message: str = ""


# =============================================================================
# Tableau
# =============================================================================

@dataclass
class Tableau:
    """Basic column -> {non-basic column: coefficient}, i.e. x_b = Σ c_j·x_j."""
    rows: Dict[int, Dict[int, Any]] = field(default_factory=dict)

    @classmethod
    def from_problem(cls, problem: CoreProblem) -> "Tableau":
        rows = {}
        for row, b in zip(problem.rows, problem.basis):
            p = row[b]
            rows[b] = {j: -c / p for j, c in row.items() if j != b}
        return cls(rows)

    def is_basic(self, j: int) -> bool:
        return j in self.rows

    def pivot(self, b: int, j: int, is_zero) -> None:
        """Exchange basic column ``b`` with non-basic column ``j``."""
        row = self.rows.pop(b)
        a = row.pop(j)
        # x_b = a·x_j + Σ c_k·x_k  ->  x_j = x_b/a − Σ (c_k/a)·x_k
        new_row = {b: 1 / a}
        for k, c in row.items():
            new_row[k] = -c / a
        for other in self.rows.values():
            if j not in other:
                continue
            c = other.pop(j)
            for k, d in new_row.items():
                value = other.get(k, 0) + c * d
                if is_zero(value):
                    other.pop(k, None)
                else:
                    other[k] = value
        self.rows[j] = new_row


# =============================================================================
# Solver
# =============================================================================

def _row_value(row: Dict[int, Any], x: List[Any], zero):
    total = zero
    for j, c in row.items():
        total = total + c * x[j]
    return total


def _initial_values(problem: CoreProblem, tableau: Tableau, start: Optional[dict]):
    fld = problem.field
    x: List[Any] = [fld.zero] * problem.n_columns
    for j in range(problem.n_columns):
        if tableau.is_basic(j):
            continue
        value = None if start is None else start.get(j)
        if value is not None and not _within_bounds(problem, j, value):
            value = None
        x[j] = problem.default_value(j) if value is None else value
    for b, row in tableau.rows.items():
        x[b] = _row_value(row, x, fld.zero)
    return x


def _within_bounds(problem: CoreProblem, j: int, value) -> bool:
    fld = problem.field
    if problem.low[j] is not None and fld.less(value, problem.low[j]):
        return False
    if problem.upper[j] is not None and fld.greater(value, problem.upper[j]):
        return False
    return True


def solve_core_problem(
    problem: CoreProblem,
    start: Optional[Dict[int, Any]] = None,
    max_iter: int = MAX_ITERATIONS,
    verbose: bool = False,
) -> EngineResult:
    """
    Find values for all columns satisfying the rows and the bounds.

    Parameters
    ----------
    problem : CoreProblem
        Rows, bounds and initial basis in some NumericField.
    start : dict or None
        Starting value per non-basic column. Values outside the column's
        bounds are ignored in favour of the default placement.
    max_iter : int
        Maximum number of pivots.
    verbose : bool
        Print progress.

    Returns
    -------
    EngineResult
    """
    fld = problem.field
    tableau = Tableau.from_problem(problem)
    x = _initial_values(problem, tableau, start)
    low, upper = problem.low, problem.upper

    for iteration in range(max_iter):
        # --- Pick the violated basic column (Bland's rule) ---
        leaving = -1
        below = False
        for b in sorted(tableau.rows):
            if low[b] is not None and fld.less(x[b], low[b]):
                leaving, below = b, True
                break
            if upper[b] is not None and fld.greater(x[b], upper[b]):
                leaving, below = b, False
                break

        if leaving == -1:
            if verbose:
                print(f"  [{fld.name}] feasible after {iteration} pivots")
            return EngineResult(
                status=EngineStatus.FEASIBLE, x=x,
                basis=sorted(tableau.rows), iterations=iteration,
            )

        # --- Pick the entering non-basic column ---
        row = tableau.rows[leaving]
        entering = -1
        for j in sorted(row):
            a = row[j]
            if fld.is_zero(a):
                continue
            can_increase = upper[j] is None or fld.less(x[j], upper[j])
            can_decrease = low[j] is None or fld.greater(x[j], low[j])
            # moving x_j up pushes x_b the right way
            increase_j = fld.is_positive(a) if below else fld.is_negative(a)
            if (increase_j and can_increase) or (not increase_j and can_decrease):
                entering = j
                break

        if entering == -1:
            sign = 1 if below else -1
            inf_row = [(a * sign, j) for j, a in sorted(row.items()) if not fld.is_zero(a)]
            inf_row.append((fld.coefficient(-sign), leaving))
            if verbose:
                print(f"  [{fld.name}] infeasible row at column {leaving} "
                      f"after {iteration} pivots")
            return EngineResult(
                status=EngineStatus.INFEASIBLE, x=x,
                basis=sorted(tableau.rows), infeasible_row=inf_row,
                infeasible_sign=sign, iterations=iteration,
            )

        # --- Pivot and update ---
        target = low[leaving] if below else upper[leaving]
        a = row[entering]
        theta = (target - x[leaving]) / a
        x[leaving] = target
        x[entering] = x[entering] + theta
        for b, other in tableau.rows.items():
            if b != leaving and entering in other:
                x[b] = x[b] + other[entering] * theta
        tableau.pivot(leaving, entering, fld.is_zero)

    if verbose:
        print(f"  [{fld.name}] iteration limit ({max_iter}) reached")
    return EngineResult(
        status=EngineStatus.ITERATION_LIMIT, x=x,
        basis=sorted(tableau.rows), iterations=max_iter,
        message=f"Iteration limit {max_iter} reached",
    )
