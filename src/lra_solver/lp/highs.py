"""
Approximate feasibility pass through scipy's HiGHS backend.

Wraps scipy.optimize.linprog to solve

    find x  such that  A x = 0,  low ≤ x ≤ upper

in float64 with a zero objective. Strictness of bounds is not visible in
this representation, so the answer is only a hint for the exact pass.

Row and column scaling help when coefficients span many orders of
magnitude; the solution is unscaled before it is returned.
"""

import warnings
from typing import Tuple

import numpy as np
from scipy.optimize import linprog

from ..config import APPROXIMATE_TOLERANCE, SCALING_ITERATIONS
from .assembler import CoreProblem
from .simplex import EngineResult, EngineStatus


_LINPROG_STATUS = {
    0: EngineStatus.FEASIBLE,
    1: EngineStatus.ITERATION_LIMIT,
    2: EngineStatus.INFEASIBLE,
    3: EngineStatus.UNBOUNDED,
    4: EngineStatus.UNKNOWN,
}


def scale_constraints(
    A: np.ndarray,
    n_iterations: int = SCALING_ITERATIONS,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Apply geometric mean row/column scaling to a homogeneous system.

    Iteratively scales rows and columns so that the maximum absolute value
    in each row/column approaches 1. With a zero right-hand side, row
    scaling leaves the solution set unchanged and column scaling
    substitutes x_j = col_scale[j] · x'_j.

    Parameters
    ----------
    A : np.ndarray
        Constraint matrix of shape (n_rows, n_columns).
    n_iterations : int
        Number of scaling iterations.

    Returns
    -------
    A_scaled : np.ndarray
        Scaled constraint matrix.
    row_scale : np.ndarray
        Row scaling factors (shape (n_rows,)).
    col_scale : np.ndarray
        Column scaling factors (shape (n_columns,)).
    """
    A_s = A.copy()
    n_rows, n_cols = A_s.shape

    row_scale = np.ones(n_rows)
    col_scale = np.ones(n_cols)

    for _ in range(n_iterations):
        for i in range(n_rows):
            row_max = np.max(np.abs(A_s[i, :])) if n_cols else 0.0
            if row_max > 0:
                factor = 1.0 / row_max
                A_s[i, :] *= factor
                row_scale[i] *= factor

        for j in range(n_cols):
            col_max = np.max(np.abs(A_s[:, j])) if n_rows else 0.0
            if col_max > 0:
                factor = 1.0 / col_max
                A_s[:, j] *= factor
                col_scale[j] *= factor

    return A_s, row_scale, col_scale


def solve_with_highs(
    problem: CoreProblem,
    tolerance: float = APPROXIMATE_TOLERANCE,
    scale: bool = True,
    verbose: bool = False,
) -> EngineResult:
    """
    Run the float64 feasibility LP of ``problem`` through HiGHS.

    Parameters
    ----------
    problem : CoreProblem
        Problem assembled in a float64 field.
    tolerance : float
        Primal and dual feasibility tolerance handed to HiGHS.
    scale : bool
        If True, apply row/column scaling before solving.
    verbose : bool
        If True, print the outcome.

    Returns
    -------
    EngineResult
        Without a basis; ``x`` is set only when HiGHS reports success.
    """
    n_cols = problem.n_columns
    if n_cols == 0:
        return EngineResult(status=EngineStatus.FEASIBLE, x=[], basis=None)

    A = problem.to_dense()
    if scale and problem.n_rows > 0:
        A_s, _, col_scale = scale_constraints(A)
    else:
        A_s = A
        col_scale = np.ones(n_cols)

    bounds = []
    for j in range(n_cols):
        lo = problem.low[j]
        up = problem.upper[j]
        bounds.append((
            None if lo is None else float(lo) / col_scale[j],
            None if up is None else float(up) / col_scale[j],
        ))

    options = {"presolve": True, "dual_feasibility_tolerance": tolerance,
               "primal_feasibility_tolerance": tolerance}

    if problem.n_rows > 0:
        res = linprog(
            np.zeros(n_cols), A_eq=A_s, b_eq=np.zeros(problem.n_rows),
            bounds=bounds, method="highs", options=options,
        )
    else:
        res = linprog(np.zeros(n_cols), bounds=bounds, method="highs", options=options)

    status = _LINPROG_STATUS.get(res.status, EngineStatus.UNKNOWN)
    if res.status == 4:
        warnings.warn(
            f"HiGHS reported numerical difficulties: {res.message}",
            RuntimeWarning,
        )
    if verbose:
        print(f"  [highs] status {res.status}: {res.message}")

    x = None
    if status is EngineStatus.FEASIBLE:
        x = [float(v) for v in np.asarray(res.x) * col_scale]
    return EngineResult(
        status=status,
        x=x,
        basis=None,
        iterations=int(getattr(res, "nit", 0) or 0),
        message=str(res.message),
    )
