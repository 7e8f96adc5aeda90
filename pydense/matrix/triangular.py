"""
Triangular matrices in dense storage.

A TriDense of order n uses an n x n row-major buffer and is tagged upper
or lower. Elements in the opposite half are neither read nor written:
at() reports them as zero and set_tri() refuses them.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pydense.core.protocols import Symmetric
from pydense.core.validation import (
    check_array,
    check_col,
    check_length,
    check_non_negative,
    check_row,
)
from pydense.matrix._storage import empty_buffer, strided


class TriDense:
    """Dense triangular matrix; TriDense() is the zero state."""

    def __init__(self) -> None:
        self._data: NDArray[np.float64] = empty_buffer()
        self._n = 0
        self._stride = 0
        self._upper = False

    def dims(self) -> tuple[int, int]:
        return self._n, self._n

    def triangle(self) -> tuple[int, bool]:
        """Order and whether the matrix is upper triangular."""
        return self._n, self._upper

    def is_zero(self) -> bool:
        return self._stride == 0

    def reset(self) -> None:
        """Return to the zero state, keeping the buffer for reuse."""
        self._n = 0
        self._stride = 0
        self._upper = False

    def raw_triangular(self) -> NDArray[np.float64]:
        """n x n storage view; only the stored triangle is meaningful."""
        return strided(self._data, self._n, self._n, self._stride)

    def _in_triangle(self, r: int, c: int) -> bool:
        return c >= r if self._upper else c <= r

    def at(self, r: int, c: int) -> float:
        check_row(r, self._n)
        check_col(c, self._n)
        if not self._in_triangle(r, c):
            return 0.0
        return float(self._data[r * self._stride + c])

    def set_tri(self, r: int, c: int, v: float) -> None:
        """
        Set an element of the stored triangle.

        Raises:
            ValueError: If (r, c) lies in the other triangle
        """
        check_row(r, self._n)
        check_col(c, self._n)
        if not self._in_triangle(r, c):
            half = 'upper' if self._upper else 'lower'
            raise ValueError(f"pydense: set ({r}, {c}) outside {half} triangle")
        self._data[r * self._stride + c] = v

    def to_numpy(self) -> NDArray[np.float64]:
        """Full n x n copy with the other triangle zeroed."""
        raw = self.raw_triangular()
        return np.triu(raw) if self._upper else np.tril(raw)

    def cholesky(self, a: Symmetric, upper: bool) -> bool:
        """
        Factor the symmetric positive definite a into the receiver.

        On return the receiver holds U with A = U^T U (upper) or L with
        A = L L^T (lower).

        Returns:
            False if a is not positive definite; the receiver contents
            are then unspecified

        Raises:
            DimensionError: If a non-zero receiver has the wrong order
            TriangleError: If a non-zero receiver stores the other triangle
        """
        from pydense.decomposition.cholesky import cholesky_into
        return cholesky_into(self, a, upper)

    def __repr__(self) -> str:
        half = 'upper' if self._upper else 'lower'
        return f"TriDense(n={self._n}, {half})"


def new_tri_dense(n: int, upper: bool, data: ArrayLike | None = None) -> TriDense:
    """
    Create an order-n triangular matrix.

    Args:
        n: Order
        upper: True for upper triangular, False for lower
        data: Optional n*n row-major values. A float64 ndarray is adopted
              without copying.

    Raises:
        ValueError: If n is negative
        DimensionError: If len(data) != n*n
    """
    check_non_negative(n, 'n')
    t = TriDense()
    if data is None:
        t._data = np.zeros(n * n, dtype=np.float64)
    else:
        t._data = check_array(data, 'data')
        check_length(t._data, n * n, 'new_tri_dense')
    t._n = n
    t._stride = n
    t._upper = upper
    return t
