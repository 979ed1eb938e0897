"""
Linear real arithmetic solver.

Accepts named real variables and linear constraints over them, decides
satisfiability, and returns either an exact rational model or a Farkas
certificate naming the constraints that cannot hold together.

Architecture:
    - Registration: constraints are normalized onto canonical left sides
      (one internal column per expression up to a scalar factor) and their
      bounds merged per column; a bound conflict is recorded immediately
    - Approximate pass: float64 (HiGHS or the generic simplex) or mpmath,
      used only to obtain a solution signature
    - Exact pass: the generic simplex over DeltaRational values seeded with
      that signature; its answer is authoritative
    - Every certificate is re-verified against the original constraints

Usage:
    solver = LarSolver()
    x = solver.add_var("x")
    y = solver.add_var("y")
    solver.add_constraint([(1, x), (1, y)], ConstraintKind.LE, 4)
    solver.add_constraint([(1, x)], ConstraintKind.GE, 3)
    solver.add_constraint([(1, y)], ConstraintKind.GE, 3)
    solver.check()                       # LpStatus.UNSATISFIABLE
    solver.get_infeasibility_evidence()  # [(1, 0), (-1, 1), (-1, 2)]
"""

import sys
import warnings
from dataclasses import replace
from enum import Enum
from fractions import Fraction
from typing import Dict, List, Optional, Sequence, TextIO, Tuple, Union

from mpmath import mp

from .certificate import (
    Evidence,
    EvidenceVerificationError,
    evidence_for_bound_conflict,
    evidence_for_degenerate_constraint,
    evidence_from_row,
    the_evidence_is_correct,
)
from .config import SolverSettings
from .constraints import (
    Constraint,
    ConstraintKind,
    NormalizedConstraint,
    format_terms,
    normalize_constraint,
)
from .lp import (
    CoreProblem,
    EngineResult,
    EngineStatus,
    SolutionSignature,
    assemble_core_problem,
    extract_signature,
    initial_nonbasic_values,
    solve_core_problem,
    solve_with_highs,
)
from .model import find_delta_for_strict_bounds
from .numeric import EXACT_FIELD, NumericField, field_for_precision
from .registry import (
    CanonicalExpressionStore,
    ColumnInfo,
    ColumnRegistry,
)

Number = Union[int, Fraction, str]


class LpStatus(Enum):
    UNKNOWN = "unknown"
    SATISFIABLE = "satisfiable"
    UNSATISFIABLE = "unsatisfiable"


class LarSolver:
    """Single-threaded owner of all registration and solve state."""

    def __init__(self, settings: Optional[SolverSettings] = None):
        self._settings = settings if settings is not None else SolverSettings()
        self._registry = ColumnRegistry()
        self._store = CanonicalExpressionStore()
        self._infos: List[ColumnInfo] = []
        self._var_left_side: List[int] = []
        self._constraints: List[Constraint] = []
        self._normalized: List[NormalizedConstraint] = []

        # first contradiction found while registering, if any
        self._infeasible_left_side: Optional[int] = None
        self._infeasible_constraint: Optional[int] = None

        self._status = LpStatus.UNKNOWN
        self._solved = False
        self._problem: Optional[CoreProblem] = None
        self._result: Optional[EngineResult] = None
        self._signature: Optional[SolutionSignature] = None
        self._evidence: Optional[Evidence] = None
        self._model: Optional[Dict[int, Fraction]] = None
        self._total_iterations = 0

    # =========================================================================
    # Registration
    # =========================================================================

    @property
    def settings(self) -> SolverSettings:
        return self._settings

    def clear(self):
        raise NotImplementedError("Constraint retraction is not supported")

    def add_var(self, name: str) -> int:
        """Register a variable and give it a trivial canonical left side."""
        var = self._registry.add_var(name)
        left_side = self._store.add_trivial(var)
        self._sync_infos()
        self._var_left_side.append(left_side.index)
        return var

    def add_constraint(
        self,
        terms: Sequence[Tuple[Number, int]],
        kind: Union[ConstraintKind, str],
        rhs: Number,
    ) -> int:
        """
        Register ``Σ coeff·var  kind  rhs``.

        A contradiction with earlier constraints is recorded, not raised;
        check() then reports unsatisfiability without running the engine.

        Parameters
        ----------
        terms : sequence of (coefficient, var_id)
            Left side; repeated variables are summed.
        kind : ConstraintKind or str
            Relation, e.g. ConstraintKind.LE or "<=".
        rhs : int, Fraction or str
            Right-hand side.

        Returns
        -------
        int
            Constraint id.
        """
        kind = ConstraintKind(kind)
        exact_terms = []
        for coeff, var in terms:
            if var not in self._registry:
                raise ValueError(f"Unknown variable index {var}")
            exact_terms.append((Fraction(coeff), var))

        index = len(self._constraints)
        constraint = Constraint(index, tuple(exact_terms), kind, Fraction(rhs))
        self._constraints.append(constraint)

        left_side, scale = self._store.create_or_fetch_existing_left_side(exact_terms)
        self._sync_infos()
        if left_side is None:
            norm = NormalizedConstraint(index, -1, Fraction(1), kind, constraint.rhs)
            self._normalized.append(norm)
            if not kind.holds(Fraction(0), constraint.rhs) and not self.contradiction_found:
                self._infeasible_constraint = index
        else:
            for var, _ in left_side.key:
                self._registry.mark_active(var)
            norm = normalize_constraint(constraint, left_side.index, scale)
            self._normalized.append(norm)
            info = self._infos[left_side.index]
            info.merge(norm)
            if info.is_infeasible() and not self.contradiction_found:
                self._infeasible_left_side = left_side.index

        self._reset_solution()
        return index

    def _sync_infos(self):
        while len(self._infos) < len(self._store):
            self._infos.append(ColumnInfo())

    def _reset_solution(self):
        self._status = LpStatus.UNKNOWN
        self._solved = False
        self._problem = None
        self._result = None
        self._signature = None
        self._evidence = None
        self._model = None

    @property
    def contradiction_found(self) -> bool:
        """True once registration alone has proven unsatisfiability."""
        return self._infeasible_left_side is not None or self._infeasible_constraint is not None

    # =========================================================================
    # Solving
    # =========================================================================

    def check(self) -> LpStatus:
        """Decide satisfiability; repeated calls reuse the previous answer."""
        self.solve()
        return self._status

    def get_status(self) -> LpStatus:
        return self._status

    def solve(self) -> None:
        if self._solved:
            return
        verbose = self._settings.verbose

        if self.contradiction_found:
            if verbose:
                print("Contradiction found during registration, skipping engine")
            self._set_unsatisfiable(self._registration_evidence())
        else:
            self._signature = self.find_solution_signature_with_approximation()
            self.solve_on_signature(self._signature)
        # only a completed solve is cached; a raising one is retried
        self._solved = True

    def _approximate_field(self) -> NumericField:
        field = field_for_precision(self._settings.approximate_precision)
        if field.dps is None:
            field = replace(field, tolerance=self._settings.tolerance)
        return field

    def assemble(self, field: NumericField) -> CoreProblem:
        return assemble_core_problem(self._store, self._infos, self._registry, field)

    def find_solution_signature_with_approximation(self) -> SolutionSignature:
        """
        Run the approximate pass and return where its non-basic columns rest.

        A problem whose numbers do not fit the approximate representation
        yields an empty signature; the exact pass then starts from the
        default placement.
        """
        settings = self._settings
        field = self._approximate_field()

        saved_dps = mp.dps
        if field.dps is not None:
            mp.dps = field.dps
        try:
            problem = self.assemble(field)
            if settings.approximate_engine == "highs":
                result = solve_with_highs(
                    problem, tolerance=settings.tolerance,
                    scale=settings.scale, verbose=settings.verbose,
                )
            else:
                result = solve_core_problem(
                    problem, max_iter=settings.max_iterations,
                    verbose=settings.verbose,
                )
            signature = extract_signature(result, problem)
        except OverflowError as exc:
            warnings.warn(
                f"Approximate pass skipped, values exceed {field.name} range: {exc}",
                RuntimeWarning,
            )
            return SolutionSignature()
        finally:
            mp.dps = saved_dps

        self._total_iterations += result.iterations
        if settings.verbose:
            print(f"Approximate pass [{settings.approximate_engine}/{field.name}]: "
                  f"{result.status.value}, signature covers "
                  f"{len(signature)}/{problem.n_columns} columns")
        return signature

    def solve_on_signature(self, signature: SolutionSignature) -> None:
        """Exact pass seeded from ``signature``; sets the status."""
        settings = self._settings
        problem = self.assemble(EXACT_FIELD)
        start = initial_nonbasic_values(problem, signature)
        result = solve_core_problem(
            problem, start=start,
            max_iter=settings.max_iterations, verbose=settings.verbose,
        )
        self._problem = problem
        self._result = result
        self._total_iterations += result.iterations

        if settings.verbose:
            print(f"Exact pass: {result.status.value} after {result.iterations} pivots "
                  f"({problem.n_rows} rows, {problem.n_columns} columns)")

        if result.status is EngineStatus.FEASIBLE:
            self._status = LpStatus.SATISFIABLE
        elif result.status is EngineStatus.INFEASIBLE:
            row = [(coeff, problem.left_sides[j]) for coeff, j in result.infeasible_row]
            self._set_unsatisfiable(evidence_from_row(row, self._infos, self._normalized))
        else:
            self._status = LpStatus.UNKNOWN

    def _registration_evidence(self) -> Evidence:
        if self._infeasible_constraint is not None:
            return evidence_for_degenerate_constraint(
                self._constraints[self._infeasible_constraint]
            )
        return evidence_for_bound_conflict(
            self._infeasible_left_side, self._infos, self._normalized,
        )

    def _set_unsatisfiable(self, evidence: Evidence) -> None:
        if self._settings.verify_evidence and not the_evidence_is_correct(
            evidence, self._constraints
        ):
            raise EvidenceVerificationError(
                f"Infeasibility evidence failed verification: {evidence}"
            )
        self._evidence = evidence
        self._status = LpStatus.UNSATISFIABLE

    @property
    def total_iterations(self) -> int:
        return self._total_iterations

    # =========================================================================
    # Answers
    # =========================================================================

    def get_infeasibility_evidence(self) -> Evidence:
        """(weight, constraint_id) pairs proving unsatisfiability."""
        if self._status is not LpStatus.UNSATISFIABLE:
            raise RuntimeError(
                f"Evidence is only available when unsatisfiable, status is {self._status.value}"
            )
        return list(self._evidence)

    def the_evidence_is_correct(self) -> bool:
        if self._status is not LpStatus.UNSATISFIABLE:
            return False
        return the_evidence_is_correct(self._evidence, self._constraints)

    def find_delta_for_strict_bounds(self) -> Fraction:
        if self._status is not LpStatus.SATISFIABLE:
            raise RuntimeError(
                f"Delta is only available when satisfiable, status is {self._status.value}"
            )
        problem = self._problem
        return find_delta_for_strict_bounds(self._result.x, problem.low, problem.upper)

    def get_model(self) -> Dict[int, Fraction]:
        """Exact value of every variable; unconstrained variables get 0."""
        if self._status is not LpStatus.SATISFIABLE:
            raise RuntimeError(
                f"A model is only available when satisfiable, status is {self._status.value}"
            )
        if self._model is None:
            delta = self.find_delta_for_strict_bounds()
            x = self._result.x
            column_of = self._problem.column_of_left_side
            model = {}
            for var, left_side in enumerate(self._var_left_side):
                j = column_of.get(left_side)
                model[var] = Fraction(0) if j is None else x[j].evaluate(delta)
            self._model = model
        return dict(self._model)

    def get_variable_name(self, var: int) -> str:
        return self._registry.name(var)

    def get_var_index(self, name: str) -> Optional[int]:
        return self._registry.index(name)

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def var_count(self) -> int:
        return len(self._registry)

    @property
    def constraint_count(self) -> int:
        return len(self._constraints)

    @property
    def canonical_left_side_count(self) -> int:
        return len(self._store)

    @property
    def multi_term_left_side_count(self) -> int:
        return sum(1 for left_side in self._store if not left_side.is_trivial)

    @property
    def column_count(self) -> int:
        """Columns of the most recently assembled exact problem."""
        return 0 if self._problem is None else self._problem.n_columns

    def get_constraint(self, index: int) -> Constraint:
        return self._constraints[index]

    def get_normalized_constraint(self, index: int) -> NormalizedConstraint:
        return self._normalized[index]

    def column_info(self, left_side: int) -> ColumnInfo:
        return self._infos[left_side]

    def column_info_of_var(self, var: int) -> ColumnInfo:
        return self._infos[self._var_left_side[var]]

    def is_active(self, var: int) -> bool:
        return self._registry.is_active(var)

    def get_left_side_val(self, constraint: Constraint, var_values: Dict[int, Fraction]) -> Fraction:
        return sum(
            (coeff * var_values.get(var, Fraction(0)) for coeff, var in constraint.terms),
            Fraction(0),
        )

    def constraint_holds(self, index: int, var_values: Dict[int, Fraction]) -> bool:
        constraint = self._constraints[index]
        return constraint.kind.holds(self.get_left_side_val(constraint, var_values), constraint.rhs)

    def all_constraints_hold(self, var_values: Optional[Dict[int, Fraction]] = None) -> bool:
        """True if every constraint holds under ``var_values`` (default: the model)."""
        if var_values is None:
            var_values = self.get_model()
        return all(self.constraint_holds(i, var_values) for i in range(len(self._constraints)))

    def _values_by_index(self, solution: Dict[str, Fraction]) -> Dict[int, Fraction]:
        values = {}
        for name, value in solution.items():
            var = self._registry.index(name)
            if var is not None:
                values[var] = Fraction(value)
        return values

    def get_canonical_left_side_val(self, left_side: int, solution: Dict[str, Fraction]) -> Fraction:
        return self._store[left_side].value(self._values_by_index(solution))

    def get_infeasibility_of_constraint(
        self,
        norm: NormalizedConstraint,
        solution: Dict[str, Fraction],
    ) -> Fraction:
        """How far a name-keyed solution is from satisfying one constraint."""
        if norm.is_degenerate:
            value = Fraction(0)
        else:
            value = self.get_canonical_left_side_val(norm.left_side, solution)
        if norm.kind is ConstraintKind.EQ:
            return abs(value - norm.rhs)
        if norm.kind.is_upper:
            return max(Fraction(0), value - norm.rhs)
        return max(Fraction(0), norm.rhs - value)

    def get_infeasibility_of_solution(self, solution: Dict[str, Fraction]) -> Fraction:
        """Summed violation over all normalized constraints."""
        return sum(
            (self.get_infeasibility_of_constraint(norm, solution) for norm in self._normalized),
            Fraction(0),
        )

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def print_left_side_of_constraint(self, index: int, out: Optional[TextIO] = None) -> None:
        out = out if out is not None else sys.stdout
        out.write(format_terms(self._constraints[index].terms, self._registry.name))

    def print_constraint(self, index: int, out: Optional[TextIO] = None) -> None:
        out = out if out is not None else sys.stdout
        constraint = self._constraints[index]
        out.write(f"c{index}: ")
        self.print_left_side_of_constraint(index, out)
        out.write(f" {constraint.kind.value} {constraint.rhs}\n")

    def print_canonical_left_side(self, left_side: int, out: Optional[TextIO] = None) -> None:
        out = out if out is not None else sys.stdout
        side = self._store[left_side]
        out.write(format_terms(side.terms, self._registry.name))
        out.write(f" in {self._infos[left_side]}\n")
