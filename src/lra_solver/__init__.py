"""
lra_solver: exact linear real arithmetic with certificates.

Decides satisfiability of linear (in)equalities over named real variables,
returning an exact rational model or a self-checked Farkas certificate.
"""

from . import config
from .config import SolverSettings
from .constraints import ConstraintKind
from .certificate import EvidenceVerificationError
from .solver import LarSolver, LpStatus

__version__ = "0.1.0"
__all__ = [
    "config",
    "SolverSettings",
    "ConstraintKind",
    "EvidenceVerificationError",
    "LarSolver",
    "LpStatus",
]
