"""
Global configuration and numerical parameters for the LRA solver.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Approximate Pass
# =============================================================================

APPROXIMATE_ENGINES = ("highs", "simplex")
"""Engines available for the approximate pass."""

APPROXIMATE_ENGINE = "highs"
"""Default engine: scipy.optimize.linprog with the HiGHS backend."""

MPMATH_PRECISION = 50
"""Decimal digits used when the approximate pass runs in mpmath."""

MPMATH_MIN_PRECISION = 10
"""Fewest digits an mpmath pass accepts; its tolerance is 10^-(dps-5)."""

APPROXIMATE_TOLERANCE = 1e-9
"""Absolute tolerance for float64 comparisons in the approximate pass."""

SCALING_ITERATIONS = 3
"""Rounds of geometric row/column scaling before calling HiGHS."""


# =============================================================================
# Exact Pass
# =============================================================================

MAX_ITERATIONS = 100_000
"""Maximum number of pivots per engine run."""


# =============================================================================
# Settings
# =============================================================================

@dataclass
class SolverSettings:
    """Per-solver settings, passed through to the engines."""

    approximate_engine: str = APPROXIMATE_ENGINE
    """Engine for the signature-finding pass ("highs" or "simplex")."""

    approximate_precision: Optional[int] = None
    """None runs the approximate pass in float64; an int selects mpmath
    with that many decimal digits (only with the "simplex" engine)."""

    tolerance: float = APPROXIMATE_TOLERANCE
    """Float64 comparison tolerance of the approximate pass."""

    max_iterations: int = MAX_ITERATIONS
    """Pivot limit for each engine run."""

    scale: bool = True
    """Apply row/column scaling before the HiGHS pass."""

    verify_evidence: bool = True
    """Re-check every infeasibility certificate before returning it."""

    verbose: bool = False
    """Print progress of each solve."""

    def __post_init__(self):
        if self.approximate_engine not in APPROXIMATE_ENGINES:
            raise ValueError(
                f"Unknown approximate engine {self.approximate_engine!r}, "
                f"expected one of {APPROXIMATE_ENGINES}"
            )
        if self.approximate_precision is not None and self.approximate_engine != "simplex":
            raise ValueError(
                "approximate_precision requires the 'simplex' approximate engine"
            )
        if self.approximate_precision is not None and self.approximate_precision < MPMATH_MIN_PRECISION:
            raise ValueError(
                f"approximate_precision must be at least {MPMATH_MIN_PRECISION} digits, "
                f"got {self.approximate_precision}"
            )
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
