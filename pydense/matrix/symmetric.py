"""
Symmetric matrices stored in their upper triangle.

A SymDense of order n keeps an n x n row-major buffer of which only the
upper triangle (j >= i) is ever read or written. The lower triangle is
implied by symmetry.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pydense.core.exceptions import DimensionError
from pydense.core.protocols import RawSymmetricer, Symmetric
from pydense.core.validation import (
    check_array,
    check_col,
    check_length,
    check_non_negative,
    check_row,
)
from pydense.matrix._storage import empty_buffer, strided, use


class SymDense:
    """Dense symmetric matrix; SymDense() is the zero state."""

    def __init__(self) -> None:
        self._data: NDArray[np.float64] = empty_buffer()
        self._n = 0

    def dims(self) -> tuple[int, int]:
        return self._n, self._n

    def symmetric(self) -> int:
        return self._n

    def is_zero(self) -> bool:
        return self._n == 0

    def raw_symmetric(self) -> NDArray[np.float64]:
        """n x n storage view; only the upper triangle is meaningful."""
        return strided(self._data, self._n, self._n, self._n)

    def at(self, r: int, c: int) -> float:
        check_row(r, self._n)
        check_col(c, self._n)
        if r > c:
            r, c = c, r
        return float(self._data[r * self._n + c])

    def set_sym(self, r: int, c: int, v: float) -> None:
        """Set elements (r, c) and (c, r) to v."""
        check_row(r, self._n)
        check_col(c, self._n)
        if r > c:
            r, c = c, r
        self._data[r * self._n + c] = v

    def to_numpy(self) -> NDArray[np.float64]:
        """Full n x n copy with the lower triangle filled in."""
        s = self.raw_symmetric()
        return np.triu(s) + np.triu(s, 1).T

    def _reuse_as(self, n: int) -> None:
        if self.is_zero():
            self._data = use(self._data, n * n)
            self._n = n
            return
        if n != self._n:
            raise DimensionError(
                f"receiver is order {self._n}, result is order {n}",
                expected=(n, n),
                actual=(self._n, self._n),
            )

    def add_sym(self, a: Symmetric, b: Symmetric) -> None:
        """
        Receiver = a + b.

        Raises:
            DimensionError: If the orders differ
        """
        n = a.symmetric()
        if n != b.symmetric():
            raise DimensionError(
                f"add_sym: order mismatch {n} vs {b.symmetric()}",
                expected=(n, n),
                actual=b.dims(),
            )
        self._reuse_as(n)
        iu = np.triu_indices(n)
        raw = self.raw_symmetric()
        if isinstance(a, RawSymmetricer) and isinstance(b, RawSymmetricer):
            raw[iu] = a.raw_symmetric()[iu] + b.raw_symmetric()[iu]
            return
        for i in range(n):
            for j in range(i, n):
                raw[i, j] = a.at(i, j) + b.at(i, j)

    def copy_sym(self, a: Symmetric) -> int:
        """Copy the overlapping leading block of a. Returns its order."""
        n = min(a.symmetric(), self._n)
        if n == 0:
            return 0
        raw = self.raw_symmetric()
        iu = np.triu_indices(n)
        if isinstance(a, RawSymmetricer):
            raw[iu] = a.raw_symmetric()[iu]
        else:
            raw[iu] = [a.at(i, j) for i, j in zip(*iu)]
        return n

    def _prepare_update(self, a: Symmetric) -> int:
        n = a.symmetric()
        if a is not self:
            self._reuse_as(n)
            self.copy_sym(a)
        return n

    def sym_rank_one(self, a: Symmetric, alpha: float, x: ArrayLike) -> None:
        """
        Receiver = a + alpha x x^T.

        Raises:
            DimensionError: If len(x) != order of a
        """
        x = np.asarray(x, dtype=np.float64)
        n = a.symmetric()
        _check_update_length(x, n, 'sym_rank_one')
        n = self._prepare_update(a)
        iu = np.triu_indices(n)
        self.raw_symmetric()[iu] += alpha * np.outer(x, x)[iu]

    def rank_two(self, a: Symmetric, alpha: float, x: ArrayLike, y: ArrayLike) -> None:
        """
        Receiver = a + alpha (x y^T + y x^T).

        Raises:
            DimensionError: If len(x) or len(y) != order of a
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        n = a.symmetric()
        _check_update_length(x, n, 'rank_two')
        _check_update_length(y, n, 'rank_two')
        n = self._prepare_update(a)
        iu = np.triu_indices(n)
        xy = np.outer(x, y)
        self.raw_symmetric()[iu] += alpha * (xy + xy.T)[iu]

    def __repr__(self) -> str:
        return f"SymDense(n={self._n})"


def _check_update_length(x: NDArray[np.float64], n: int, op: str) -> None:
    if len(x) != n:
        raise DimensionError(
            f"{op}: vector length {len(x)} does not match order {n}",
            expected=(n,),
            actual=(len(x),),
        )


def new_sym_dense(n: int, data: ArrayLike | None = None) -> SymDense:
    """
    Create an order-n symmetric matrix.

    Args:
        n: Order
        data: Optional n*n row-major values; only the upper triangle is
              used. A float64 ndarray is adopted without copying.

    Raises:
        ValueError: If n is negative
        DimensionError: If len(data) != n*n
    """
    check_non_negative(n, 'n')
    s = SymDense()
    if data is None:
        s._data = np.zeros(n * n, dtype=np.float64)
    else:
        s._data = check_array(data, 'data')
        check_length(s._data, n * n, 'new_sym_dense')
    s._n = n
    return s
