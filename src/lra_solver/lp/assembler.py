"""
Assembly of the simplex problem from the registries.

The problem has one column per canonical left side in use (trivial sides of
active variables, and every multi-term side) and one row per multi-term
side L = Σ a_i·x_i:

    Σ a_i·x_i − s_L = 0

where s_L is the side's own column. The slack s_L appears in no other row,
so the slacks form the initial basis. Bounds aggregated on a side become
bounds of its column, converted through the chosen NumericField.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..numeric import NumericField
from ..registry import (
    CanonicalExpressionStore,
    ColumnInfo,
    ColumnRegistry,
    ColumnType,
    get_column_type,
)


@dataclass
class CoreProblem:
    """
    Input of a simplex engine in one numeric representation.

    Attributes
    ----------
    field : NumericField
        Representation of coefficients and values.
    rows : list of dict
        Row i maps problem column -> coefficient, slack included.
    basis : list of int
        Initial basic column of each row.
    low, upper : list
        Per-column bounds in ``field`` values; None where absent.
    column_types : list of ColumnType
    column_names : list of str
    left_sides : list of int
        Arena index of the canonical left side behind each column.
    """
    field: NumericField
    rows: List[Dict[int, Any]]
    basis: List[int]
    low: List[Optional[Any]]
    upper: List[Optional[Any]]
    column_types: List[ColumnType]
    column_names: List[str]
    left_sides: List[int]
    column_of_left_side: Dict[int, int] = field(default_factory=dict)

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    @property
    def n_columns(self) -> int:
        return len(self.column_types)

    def to_dense(self) -> np.ndarray:
        """Float64 coefficient matrix of shape (n_rows, n_columns)."""
        A = np.zeros((self.n_rows, self.n_columns))
        for i, row in enumerate(self.rows):
            for j, coeff in row.items():
                A[i, j] = float(coeff)
        return A

    def default_value(self, j: int):
        """Resting value of a non-basic column without a better hint."""
        if self.low[j] is not None:
            return self.low[j]
        if self.upper[j] is not None:
            return self.upper[j]
        return self.field.zero


def select_columns(
    store: CanonicalExpressionStore,
    registry: ColumnRegistry,
) -> List[int]:
    """Arena indices that get a problem column, in arena order."""
    selected = []
    for left_side in store:
        if left_side.is_trivial and not registry.is_active(left_side.var):
            continue
        selected.append(left_side.index)
    return selected


def fill_bounds(
    infos: Sequence[ColumnInfo],
    left_sides: Sequence[int],
    field: NumericField,
):
    """Convert exact aggregated bounds into ``field`` values."""
    low, upper, types = [], [], []
    for index in left_sides:
        info = infos[index]
        low.append(
            field.low_bound(info.low, info.low_is_strict) if info.has_low else None
        )
        upper.append(
            field.upper_bound(info.upper, info.upper_is_strict)
            if info.has_upper else None
        )
        types.append(get_column_type(info))
    return low, upper, types


def assemble_core_problem(
    store: CanonicalExpressionStore,
    infos: Sequence[ColumnInfo],
    registry: ColumnRegistry,
    field: NumericField,
) -> CoreProblem:
    """
    Build the engine input for one numeric representation.

    Parameters
    ----------
    store : CanonicalExpressionStore
        All canonical left sides.
    infos : sequence of ColumnInfo
        Aggregated bounds, parallel to the store arena.
    registry : ColumnRegistry
        Variable names and the active set.
    field : NumericField
        Target numeric representation.

    Returns
    -------
    CoreProblem
    """
    left_sides = select_columns(store, registry)
    column_of = {index: j for j, index in enumerate(left_sides)}

    names = []
    for index in left_sides:
        left_side = store[index]
        if left_side.is_trivial:
            names.append(registry.name(left_side.var))
        else:
            names.append(f"_s_{index}")

    rows: List[Dict[int, Any]] = []
    basis: List[int] = []
    minus_one = field.coefficient(-1)
    for index in left_sides:
        left_side = store[index]
        if left_side.is_trivial:
            continue
        row = {}
        for var, coeff in left_side.key:
            row[column_of[store.find([(1, var)]).index]] = field.coefficient(coeff)
        slack = column_of[index]
        row[slack] = minus_one
        rows.append(row)
        basis.append(slack)

    low, upper, types = fill_bounds(infos, left_sides, field)

    return CoreProblem(
        field=field,
        rows=rows,
        basis=basis,
        low=low,
        upper=upper,
        column_types=types,
        column_names=names,
        left_sides=left_sides,
        column_of_left_side=column_of,
    )
