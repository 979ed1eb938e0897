#!/usr/bin/env python3
"""
Decide a linear real arithmetic problem from a text file.

Usage:
    python scripts/solve_lra.py problem.lra
    python scripts/solve_lra.py problem.lra --engine simplex --precision 40
    python scripts/solve_lra.py problem.lra --verbose

Prints the status, then either the model (one ``name = value`` per line)
or the certificate (one weighted constraint per line).
"""

import argparse
import sys
from pathlib import Path

# Add project to path for package import
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lra_solver import LarSolver, LpStatus, SolverSettings
from lra_solver.text_format import load_problem


def main():
    parser = argparse.ArgumentParser(description="Solve a linear real arithmetic problem")
    parser.add_argument("problem", type=Path, help="Problem file")
    parser.add_argument("--engine", choices=["highs", "simplex"], default="highs",
                        help="Engine for the approximate pass")
    parser.add_argument("--precision", type=int, default=None,
                        help="mpmath digits for the approximate pass (simplex engine only)")
    parser.add_argument("--max-iterations", type=int, default=None,
                        help="Pivot limit per engine run")
    parser.add_argument("--verbose", action="store_true", help="Print solver progress")
    args = parser.parse_args()

    kwargs = {}
    if args.max_iterations is not None:
        kwargs["max_iterations"] = args.max_iterations
    settings = SolverSettings(
        approximate_engine=args.engine,
        approximate_precision=args.precision,
        verbose=args.verbose,
        **kwargs,
    )

    solver = LarSolver(settings)
    with open(args.problem) as f:
        load_problem(f, solver)

    status = solver.check()
    print(status.value)

    if status is LpStatus.SATISFIABLE:
        for var, value in sorted(solver.get_model().items()):
            print(f"  {solver.get_variable_name(var)} = {value}")
    elif status is LpStatus.UNSATISFIABLE:
        for weight, index in solver.get_infeasibility_evidence():
            sys.stdout.write(f"  {weight} * ")
            solver.print_constraint(index)

    return 0 if status is not LpStatus.UNKNOWN else 1


if __name__ == "__main__":
    sys.exit(main())
