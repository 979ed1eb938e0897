"""
Simplex layer for the LRA solver.

Implements:
- Assembly of rows, bounds and column types in a chosen numeric field
- A bounded-variable simplex over any NumericField (exact pass)
- A float64 HiGHS pass with row/column scaling (approximate pass)
- Solution signatures linking the two passes

Main entry points:
- `assemble_core_problem(store, infos, registry, field)`: Matrix construction
- `solve_core_problem(problem, start)`: Generic engine
- `solve_with_highs(problem)`: scipy/HiGHS engine
"""

from .assembler import (
    CoreProblem,
    assemble_core_problem,
    fill_bounds,
    select_columns,
)

from .simplex import (
    EngineStatus,
    EngineResult,
    Tableau,
    solve_core_problem,
)

from .highs import (
    scale_constraints,
    solve_with_highs,
)

from .signature import (
    NonBasicPosition,
    SolutionSignature,
    extract_signature,
    get_column_val,
    initial_nonbasic_values,
)

__all__ = [
    # Assembly
    "CoreProblem",
    "assemble_core_problem",
    "fill_bounds",
    "select_columns",
    # Engines
    "EngineStatus",
    "EngineResult",
    "Tableau",
    "solve_core_problem",
    "scale_constraints",
    "solve_with_highs",
    # Signatures
    "NonBasicPosition",
    "SolutionSignature",
    "extract_signature",
    "get_column_val",
    "initial_nonbasic_values",
]
