"""
Tests for the LarSolver facade.

Runs complete registrations through both passes and checks the answers
against the original constraints: every model must satisfy them exactly
and every certificate must pass verification.
"""

import io
import random
import pytest
from fractions import Fraction

from lra_solver import (
    ConstraintKind,
    EvidenceVerificationError,
    LarSolver,
    LpStatus,
    SolverSettings,
)
from lra_solver.certificate import the_evidence_is_correct


ALL_SETTINGS = [
    SolverSettings(),
    SolverSettings(scale=False),
    SolverSettings(approximate_engine="simplex"),
    SolverSettings(approximate_engine="simplex", approximate_precision=30),
]


def scenario_sum_too_small(settings=None):
    """x + y <= 4, x >= 3, y >= 3."""
    solver = LarSolver(settings)
    x = solver.add_var("x")
    y = solver.add_var("y")
    solver.add_constraint([(1, x), (1, y)], ConstraintKind.LE, 4)
    solver.add_constraint([(1, x)], ConstraintKind.GE, 3)
    solver.add_constraint([(1, y)], ConstraintKind.GE, 3)
    return solver


# ============================================================================
# Basic scenarios
# ============================================================================

class TestScenarios:
    """Small problems with known answers."""

    def test_infeasible_sum(self):
        solver = scenario_sum_too_small()
        assert solver.check() is LpStatus.UNSATISFIABLE
        evidence = solver.get_infeasibility_evidence()
        assert evidence == [(Fraction(1), 0), (Fraction(-1), 1), (Fraction(-1), 2)]
        assert solver.the_evidence_is_correct()

    def test_interval(self):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([(1, x)], ">=", 1)
        solver.add_constraint([(1, x)], "<=", 5)
        assert solver.check() is LpStatus.SATISFIABLE
        model = solver.get_model()
        assert 1 <= model[x] <= 5
        assert isinstance(model[x], Fraction)

    def test_strict_bounds_at_same_value(self):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([(1, x)], ">", 1)
        solver.add_constraint([(1, x)], "<", 1)
        assert solver.contradiction_found
        assert solver.check() is LpStatus.UNSATISFIABLE
        assert solver.get_infeasibility_evidence() == [(Fraction(-1), 0), (Fraction(1), 1)]
        assert solver.the_evidence_is_correct()

    def test_unique_solution(self):
        solver = LarSolver()
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x), (1, y)], "=", 3)
        solver.add_constraint([(1, x), (-1, y)], "=", 1)
        assert solver.check() is LpStatus.SATISFIABLE
        assert solver.get_model() == {x: Fraction(2), y: Fraction(1)}

    def test_rational_coefficients(self):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([(Fraction(1, 3), x)], "=", Fraction(1, 7))
        assert solver.check() is LpStatus.SATISFIABLE
        assert solver.get_model()[x] == Fraction(3, 7)

    def test_string_numbers(self):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([("1/2", x)], "<=", "-3/4")
        assert solver.check() is LpStatus.SATISFIABLE
        assert solver.get_model()[x] <= Fraction(-3, 2)

    def test_empty_problem(self):
        solver = LarSolver()
        assert solver.check() is LpStatus.SATISFIABLE
        assert solver.get_model() == {}


# ============================================================================
# Strict bounds and models
# ============================================================================

class TestStrictModels:
    """Models must satisfy strict constraints strictly."""

    def test_strict_sum(self):
        solver = LarSolver()
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x), (1, y)], "<", 4)
        solver.add_constraint([(1, x)], ">", 1)
        solver.add_constraint([(1, y)], ">", 2)
        assert solver.check() is LpStatus.SATISFIABLE
        model = solver.get_model()
        assert model[x] > 1
        assert model[y] > 2
        assert model[x] + model[y] < 4
        assert solver.all_constraints_hold()

    def test_strict_infeasible_only_through_infinitesimal(self):
        solver = LarSolver()
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x), (1, y)], "<", 4)
        solver.add_constraint([(1, x)], ">=", 2)
        solver.add_constraint([(1, y)], ">=", 2)
        assert solver.check() is LpStatus.UNSATISFIABLE
        assert solver.the_evidence_is_correct()

    def test_strict_chain(self):
        solver = LarSolver()
        v = [solver.add_var(f"v{i}") for i in range(4)]
        for a, b in zip(v, v[1:]):
            solver.add_constraint([(1, a), (-1, b)], "<", 0)
        solver.add_constraint([(1, v[0])], ">=", 0)
        solver.add_constraint([(1, v[-1])], "<=", Fraction(1, 100))
        assert solver.check() is LpStatus.SATISFIABLE
        model = solver.get_model()
        assert all(model[a] < model[b] for a, b in zip(v, v[1:]))
        assert solver.all_constraints_hold()

    def test_unused_variable_gets_zero(self):
        solver = LarSolver()
        x = solver.add_var("x")
        unused = solver.add_var("unused")
        solver.add_constraint([(1, x)], ">=", 7)
        assert solver.check() is LpStatus.SATISFIABLE
        assert not solver.is_active(unused)
        assert solver.get_model()[unused] == 0

    def test_delta_is_positive(self):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([(1, x)], ">", 0)
        solver.check()
        assert solver.find_delta_for_strict_bounds() > 0


# ============================================================================
# Canonical left sides
# ============================================================================

class TestCanonicalLeftSides:
    """Proportional expressions share one internal column."""

    def test_proportional_constraints_deduplicated(self):
        solver = LarSolver()
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x), (1, y)], "<=", 4)
        solver.add_constraint([(2, x), (2, y)], ">=", 6)
        assert solver.multi_term_left_side_count == 1
        assert solver.canonical_left_side_count == 3
        assert solver.check() is LpStatus.SATISFIABLE
        assert solver.column_count == 3
        model = solver.get_model()
        assert 3 <= model[x] + model[y] <= 4

    def test_proportional_conflict_at_registration(self):
        solver = LarSolver()
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x), (1, y)], "<=", 2)
        solver.add_constraint([(2, x), (2, y)], ">=", 6)
        assert solver.contradiction_found
        assert solver.check() is LpStatus.UNSATISFIABLE
        assert solver.get_infeasibility_evidence() == [(Fraction(1), 0), (Fraction(-1, 2), 1)]
        assert solver.total_iterations == 0

    def test_negative_multiple_flips_relation(self):
        solver = LarSolver()
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x), (-1, y)], ">=", 1)
        c = solver.add_constraint([(-3, x), (3, y)], ">=", -6)
        norm = solver.get_normalized_constraint(c)
        assert norm.kind is ConstraintKind.LE
        assert norm.rhs == 2
        info = solver.column_info(norm.left_side)
        assert (info.low, info.upper) == (1, 2)

    def test_single_variable_bounds_go_to_variable_column(self):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([(-2, x)], "<", 4)
        info = solver.column_info_of_var(x)
        assert info.low == -2
        assert info.low_is_strict
        assert solver.multi_term_left_side_count == 0


# ============================================================================
# Degenerate constraints
# ============================================================================

class TestZeroLeftSide:
    """Constraints whose coefficients all cancel."""

    def test_true_constraint_is_ignored(self):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([(0, x)], "<=", 1)
        solver.add_constraint([(1, x), (-1, x)], "=", 0)
        assert not solver.contradiction_found
        assert solver.check() is LpStatus.SATISFIABLE
        assert not solver.is_active(x)

    @pytest.mark.parametrize("kind,rhs", [(">=", 1), ("<", 0), ("=", -3)])
    def test_false_constraint_is_the_certificate(self, kind, rhs):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([(1, x)], ">=", 0)
        c = solver.add_constraint([(0, x)], kind, rhs)
        assert solver.check() is LpStatus.UNSATISFIABLE
        evidence = solver.get_infeasibility_evidence()
        assert [ci for _, ci in evidence] == [c]
        assert solver.the_evidence_is_correct()

    def test_empty_terms(self):
        solver = LarSolver()
        solver.add_constraint([], "<", 0)
        assert solver.check() is LpStatus.UNSATISFIABLE


# ============================================================================
# Solve lifecycle
# ============================================================================

class TestLifecycle:
    """Status handling, idempotence and misuse."""

    def test_check_is_idempotent(self):
        solver = scenario_sum_too_small()
        first = solver.check()
        evidence = solver.get_infeasibility_evidence()
        iterations = solver.total_iterations
        assert solver.check() is first
        assert solver.get_infeasibility_evidence() == evidence
        assert solver.total_iterations == iterations

    def test_status_before_check(self):
        solver = scenario_sum_too_small()
        assert solver.get_status() is LpStatus.UNKNOWN

    def test_adding_constraint_resets(self):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([(1, x)], ">=", 1)
        assert solver.check() is LpStatus.SATISFIABLE
        solver.add_constraint([(1, x)], "<", 1)
        assert solver.get_status() is LpStatus.UNKNOWN
        assert solver.check() is LpStatus.UNSATISFIABLE

    def test_conflict_evidence_uses_current_witnesses(self):
        solver = LarSolver()
        x = solver.add_var("x")
        solver.add_constraint([(1, x)], ">=", 2)
        solver.add_constraint([(1, x)], "<=", 1)
        solver.add_constraint([(1, x)], "<=", 0)
        solver.check()
        assert solver.get_infeasibility_evidence() == [(Fraction(-1), 0), (Fraction(1), 2)]
        assert solver.the_evidence_is_correct()

    def test_iteration_limit_gives_unknown(self):
        solver = LarSolver(SolverSettings(approximate_engine="simplex", max_iterations=1))
        x = solver.add_var("x")
        y = solver.add_var("y")
        for v in (x, y):
            solver.add_constraint([(1, v)], ">=", 0)
            solver.add_constraint([(1, v)], "<=", 3)
        solver.add_constraint([(1, x), (1, y)], ">=", 4)
        assert solver.check() is LpStatus.UNKNOWN
        with pytest.raises(RuntimeError):
            solver.get_model()

    def test_model_requires_satisfiable(self):
        solver = scenario_sum_too_small()
        with pytest.raises(RuntimeError):
            solver.get_model()
        solver.check()
        with pytest.raises(RuntimeError):
            solver.get_model()

    def test_evidence_requires_unsatisfiable(self):
        solver = LarSolver()
        solver.add_var("x")
        with pytest.raises(RuntimeError):
            solver.get_infeasibility_evidence()
        solver.check()
        with pytest.raises(RuntimeError):
            solver.get_infeasibility_evidence()
        assert not solver.the_evidence_is_correct()

    def test_unknown_variable_raises(self):
        solver = LarSolver()
        solver.add_var("x")
        with pytest.raises(ValueError):
            solver.add_constraint([(1, 5)], "<=", 0)

    def test_unknown_relation_raises(self):
        solver = LarSolver()
        x = solver.add_var("x")
        with pytest.raises(ValueError):
            solver.add_constraint([(1, x)], "!=", 0)

    def test_failed_solve_is_not_cached(self, monkeypatch):
        import lra_solver.solver as solver_module

        real_engine = solver_module.solve_core_problem
        calls = []

        def failing_once(*args, **kwargs):
            if not calls:
                calls.append(1)
                raise RuntimeError("engine failure")
            return real_engine(*args, **kwargs)

        monkeypatch.setattr(solver_module, "solve_core_problem", failing_once)
        solver = scenario_sum_too_small()
        with pytest.raises(RuntimeError, match="engine failure"):
            solver.check()
        assert solver.get_status() is LpStatus.UNKNOWN
        assert solver.check() is LpStatus.UNSATISFIABLE
        assert solver.the_evidence_is_correct()

    def test_delta_requires_satisfiable(self):
        solver = scenario_sum_too_small()
        with pytest.raises(RuntimeError):
            solver.find_delta_for_strict_bounds()
        solver.check()
        with pytest.raises(RuntimeError):
            solver.find_delta_for_strict_bounds()

    def test_clear_not_supported(self):
        with pytest.raises(NotImplementedError):
            LarSolver().clear()

    def test_verification_failure_raises(self, monkeypatch):
        import lra_solver.solver as solver_module

        monkeypatch.setattr(solver_module, "the_evidence_is_correct", lambda e, c: False)
        solver = scenario_sum_too_small()
        with pytest.raises(EvidenceVerificationError):
            solver.check()

    def test_verification_can_be_disabled(self, monkeypatch):
        import lra_solver.solver as solver_module

        monkeypatch.setattr(solver_module, "the_evidence_is_correct", lambda e, c: False)
        solver = scenario_sum_too_small(SolverSettings(verify_evidence=False))
        assert solver.check() is LpStatus.UNSATISFIABLE


# ============================================================================
# Numbers beyond float64 range
# ============================================================================

class TestLargeNumbers:
    """The approximate pass is skipped when float64 cannot hold the problem."""

    @pytest.mark.parametrize("engine", ["highs", "simplex"])
    def test_huge_bound(self, engine):
        solver = LarSolver(SolverSettings(approximate_engine=engine))
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x)], ">=", 10**400)
        solver.add_constraint([(1, x), (1, y)], "<=", 10**400 + 1)
        with pytest.warns(RuntimeWarning, match="Approximate pass skipped"):
            assert solver.check() is LpStatus.SATISFIABLE
        assert solver.get_model()[x] >= 10**400
        assert solver.all_constraints_hold()

    @pytest.mark.parametrize("engine", ["highs", "simplex"])
    def test_huge_coefficient(self, engine):
        solver = LarSolver(SolverSettings(approximate_engine=engine))
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x), (10**400, y)], "<=", 1)
        solver.add_constraint([(1, y)], ">=", 1)
        solver.add_constraint([(1, x)], ">=", 0)
        with pytest.warns(RuntimeWarning):
            assert solver.check() is LpStatus.UNSATISFIABLE
        assert solver.the_evidence_is_correct()

    def test_extended_precision_needs_no_fallback(self):
        settings = SolverSettings(approximate_engine="simplex", approximate_precision=30)
        solver = LarSolver(settings)
        x = solver.add_var("x")
        solver.add_constraint([(1, x)], ">=", 10**400)
        assert solver.check() is LpStatus.SATISFIABLE
        assert solver.get_model()[x] == 10**400


# ============================================================================
# Names and inspection
# ============================================================================

class TestInspection:
    """Names, counts, violation measures and printing."""

    def test_names(self):
        solver = LarSolver()
        x = solver.add_var("x")
        assert solver.get_variable_name(x) == "x"
        assert solver.get_var_index("x") == x
        assert solver.get_var_index("nope") is None

    def test_duplicate_names(self):
        solver = LarSolver()
        first = solver.add_var("x")
        second = solver.add_var("x")
        assert first != second
        assert solver.get_var_index("x") == second
        assert solver.var_count == 2

    def test_counts(self):
        solver = scenario_sum_too_small()
        assert solver.var_count == 2
        assert solver.constraint_count == 3
        assert solver.column_count == 0
        solver.check()
        assert solver.column_count == 3

    def test_infeasibility_of_solution(self):
        solver = LarSolver()
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x)], ">=", 1)
        solver.add_constraint([(1, x)], "<=", 5)
        solver.add_constraint([(2, x), (2, y)], "=", 4)
        assert solver.get_infeasibility_of_solution({"x": 3, "y": -1}) == 0
        # x <= 5 violated by 2, x + y = 2 violated by 7
        assert solver.get_infeasibility_of_solution({"x": 7, "y": 2}) == 9

    def test_constraint_holds(self):
        solver = scenario_sum_too_small()
        assert solver.constraint_holds(0, {0: Fraction(1), 1: Fraction(3)})
        assert not solver.constraint_holds(1, {0: Fraction(1), 1: Fraction(3)})
        assert not solver.all_constraints_hold({0: Fraction(1), 1: Fraction(3)})
        assert solver.get_left_side_val(solver.get_constraint(0), {0: 1, 1: 3}) == 4

    def test_print_constraint(self):
        solver = LarSolver()
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x), (2, y)], "<=", 10)
        out = io.StringIO()
        solver.print_constraint(0, out)
        assert out.getvalue() == "c0: x + 2*y <= 10\n"

    def test_print_canonical_left_side(self):
        solver = LarSolver()
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(2, x), (4, y)], ">", 2)
        out = io.StringIO()
        solver.print_canonical_left_side(2, out)
        assert out.getvalue() == "x + 2*y in (1, +inf)\n"

    def test_verbose_output(self, capsys):
        solver = scenario_sum_too_small(SolverSettings(verbose=True))
        solver.check()
        output = capsys.readouterr().out
        assert "Approximate pass [highs/double]" in output
        assert "Exact pass: infeasible" in output

    def test_verbose_registration_contradiction(self, capsys):
        solver = LarSolver(SolverSettings(verbose=True))
        x = solver.add_var("x")
        solver.add_constraint([(1, x)], ">", 0)
        solver.add_constraint([(1, x)], "<", 0)
        solver.check()
        assert "skipping engine" in capsys.readouterr().out


# ============================================================================
# Approximate pass never changes the answer
# ============================================================================

def random_problem(rng, n_vars, n_constraints, settings=None):
    solver = LarSolver(settings)
    variables = [solver.add_var(f"x{i}") for i in range(n_vars)]
    kinds = list(ConstraintKind)
    for _ in range(n_constraints):
        size = rng.randint(1, n_vars)
        terms = [(rng.randint(-3, 3), v) for v in rng.sample(variables, size)]
        solver.add_constraint(terms, rng.choice(kinds), rng.randint(-5, 5))
    return solver


class TestEngineAgreement:
    """Every approximate configuration leads to the same exact status."""

    @pytest.mark.parametrize("settings", ALL_SETTINGS)
    def test_infeasible_sum(self, settings):
        solver = scenario_sum_too_small(settings)
        assert solver.check() is LpStatus.UNSATISFIABLE
        assert {ci for _, ci in solver.get_infeasibility_evidence()} == {0, 1, 2}
        assert solver.the_evidence_is_correct()

    @pytest.mark.parametrize("settings", ALL_SETTINGS)
    def test_feasible_box(self, settings):
        solver = LarSolver(settings)
        x = solver.add_var("x")
        y = solver.add_var("y")
        solver.add_constraint([(1, x), (1, y)], ">=", 4)
        solver.add_constraint([(1, x), (-1, y)], "<", 1)
        solver.add_constraint([(1, x)], "<=", 3)
        solver.add_constraint([(1, y)], "<=", 3)
        assert solver.check() is LpStatus.SATISFIABLE
        assert solver.all_constraints_hold()

    @pytest.mark.slow
    def test_random_problems(self):
        rng = random.Random(20240611)
        for trial in range(60):
            seed = rng.randrange(10**9)
            statuses = set()
            for settings in ALL_SETTINGS:
                solver = random_problem(random.Random(seed), 3, 5, settings)
                status = solver.check()
                statuses.add(status)
                if status is LpStatus.SATISFIABLE:
                    assert solver.all_constraints_hold()
                else:
                    assert status is LpStatus.UNSATISFIABLE
                    assert the_evidence_is_correct(
                        solver.get_infeasibility_evidence(),
                        [solver.get_constraint(i) for i in range(solver.constraint_count)],
                    )
            assert len(statuses) == 1, f"trial {trial}: engines disagree"
