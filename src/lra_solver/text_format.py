"""
Plain-text problem format used by scripts/solve_lra.py.

One statement per line, ``#`` starts a comment:

    var x
    var y
    x + y <= 4
    2*x - 3/2*y > 1
    x = 1/3

Variables must be declared before use. Coefficients are integers or
fractions, written before the variable with an optional ``*``.
"""

import re
from fractions import Fraction
from typing import Dict, Iterable, List, Tuple

from .constraints import ConstraintKind
from .solver import LarSolver

_RELATION = re.compile(r"(<=|>=|<|>|=)")
_TERM = re.compile(
    r"\s*([+-])?\s*(\d+(?:/\d+)?)?\s*\*?\s*([A-Za-z_][A-Za-z0-9_]*)\s*"
)


def parse_left_side(text: str, names: Dict[str, int]) -> List[Tuple[Fraction, int]]:
    """Parse ``2*x - y + 1/2*z`` into (coefficient, var_id) terms."""
    terms = []
    pos = 0
    text = text.strip()
    while pos < len(text):
        match = _TERM.match(text, pos)
        if match is None or match.end() == pos:
            raise ValueError(f"Cannot parse term at {text[pos:]!r}")
        sign, coeff, name = match.groups()
        if terms and sign is None:
            raise ValueError(f"Missing operator before {name!r}")
        if name not in names:
            raise ValueError(f"Undeclared variable {name!r}")
        value = Fraction(coeff) if coeff else Fraction(1)
        if sign == "-":
            value = -value
        terms.append((value, names[name]))
        pos = match.end()
    if not terms:
        raise ValueError("Empty left side")
    return terms


def load_problem(lines: Iterable[str], solver: LarSolver) -> Dict[str, int]:
    """
    Feed a problem into ``solver``.

    Returns
    -------
    dict
        Variable name -> id, for the variables declared.
    """
    names: Dict[str, int] = {}
    for lineno, raw in enumerate(lines, start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        if line.startswith("var "):
            for name in line[4:].replace(",", " ").split():
                names[name] = solver.add_var(name)
            continue
        parts = _RELATION.split(line)
        if len(parts) != 3:
            raise ValueError(f"Line {lineno}: expected exactly one relation in {line!r}")
        left, relation, right = parts
        try:
            terms = parse_left_side(left, names)
            rhs = Fraction(right.strip())
        except ValueError as exc:
            raise ValueError(f"Line {lineno}: {exc}") from exc
        solver.add_constraint(terms, ConstraintKind(relation), rhs)
    return names
