"""Helpers shared by the factorizations."""

import functools
import math
from typing import Iterable

import numpy as np
from numpy.typing import NDArray

from pydense.core.exceptions import DimensionError


def hypot_norm(x: Iterable[float]) -> float:
    """
    Euclidean norm accumulated with hypot, avoiding intermediate
    overflow and underflow.
    """
    return functools.reduce(math.hypot, x, 0.0)


def check_rhs_rows(expected: int, b_rows: int, op: str) -> None:
    """Verify a right-hand side has the factor's row count."""
    if expected != b_rows:
        raise DimensionError(
            f"{op}: right-hand side has {b_rows} rows, expected {expected}",
            expected=(expected,),
            actual=(b_rows,),
        )


def triangle_of(raw: NDArray[np.float64], upper: bool) -> NDArray[np.float64]:
    """Copy of raw with the other triangle zeroed."""
    return np.triu(raw) if upper else np.tril(raw)
