"""
Column vectors over strided float64 storage.

A Vector of length n with increment inc reads element i from
data[i*inc]. Row and column views of a Dense matrix are Vectors sharing
the matrix buffer, so writing through the vector writes the matrix.
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pydense.core.exceptions import DimensionError, IndexOutOfRangeError
from pydense.core.protocols import (
    Matrix,
    RawMatrixer,
    RawSymmetricer,
    RawTriangular,
    Vectorer,
)
from pydense.core.validation import (
    check_array,
    check_col,
    check_length,
    check_non_negative,
    check_row,
    check_vector_index,
)
from pydense.matrix._storage import empty_buffer, use


class Vector:
    """
    Column vector (n x 1 matrix).

    Vector() is the zero state; new_vector() builds one of a given length.
    """

    def __init__(self) -> None:
        self._data: NDArray[np.float64] = empty_buffer()
        self._inc = 0
        self._n = 0

    @classmethod
    def _from_raw(cls, data: NDArray[np.float64], inc: int, n: int) -> 'Vector':
        v = cls()
        v._data = data
        v._inc = inc
        v._n = n
        return v

    def dims(self) -> tuple[int, int]:
        return self._n, 1

    def len(self) -> int:
        return self._n

    def __len__(self) -> int:
        return self._n

    def is_zero(self) -> bool:
        return self._inc == 0

    def reset(self) -> None:
        """Return to the zero state, keeping the buffer for reuse."""
        self._inc = 0
        self._n = 0

    def _reuse_as(self, n: int) -> None:
        if self.is_zero():
            self._data = use(self._data, n)
            self._inc = 1
            self._n = n
            return
        if n != self._n:
            raise DimensionError(
                f"receiver has length {self._n}, result has length {n}",
                expected=(n, 1),
                actual=(self._n, 1),
            )

    def _assign(self, other: 'Vector') -> None:
        self._data = other._data
        self._inc = other._inc
        self._n = other._n

    def raw_vector(self) -> NDArray[np.float64]:
        """Writable 1-D array aliasing the vector elements."""
        if self._n == 0:
            return self._data[:0]
        return self._data[:(self._n - 1) * self._inc + 1:self._inc]

    def to_numpy(self) -> NDArray[np.float64]:
        return self.raw_vector().copy()

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------

    def at(self, r: int, c: int) -> float:
        check_row(r, self._n)
        check_col(c, 1)
        return float(self._data[r * self._inc])

    def at_vec(self, i: int) -> float:
        check_vector_index(i, self._n)
        return float(self._data[i * self._inc])

    def set_vec(self, i: int, v: float) -> None:
        check_vector_index(i, self._n)
        self._data[i * self._inc] = v

    def view_vec(self, i: int, n: int) -> 'Vector':
        """
        n-element sub-vector starting at i, sharing storage.

        Raises:
            IndexOutOfRangeError: If the window is empty or out of range
        """
        if i < 0 or n <= 0 or i + n > self._n:
            raise IndexOutOfRangeError(
                f"view_vec: [{i}, {i + n}) outside [0, {self._n})"
            )
        return Vector._from_raw(self._data[i * self._inc:], self._inc, n)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def copy_vec(self, a: 'Vector') -> int:
        """Copy the overlapping prefix of a. Returns the number copied."""
        n = min(self._n, a.len())
        if n:
            self.raw_vector()[:n] = a.raw_vector()[:n].copy()
        return n

    def _elementwise(self, a: 'Vector', b: 'Vector', ufunc: np.ufunc, op: str) -> None:
        if a.len() != b.len():
            raise DimensionError(
                f"{op}: length mismatch {a.len()} vs {b.len()}",
                expected=(a.len(),),
                actual=(b.len(),),
            )
        self._reuse_as(a.len())
        with np.errstate(divide='ignore', invalid='ignore'):
            ufunc(a.raw_vector(), b.raw_vector(), out=self.raw_vector())

    def add_vec(self, a: 'Vector', b: 'Vector') -> None:
        self._elementwise(a, b, np.add, 'add_vec')

    def sub_vec(self, a: 'Vector', b: 'Vector') -> None:
        self._elementwise(a, b, np.subtract, 'sub_vec')

    def mul_elem_vec(self, a: 'Vector', b: 'Vector') -> None:
        self._elementwise(a, b, np.multiply, 'mul_elem_vec')

    def div_elem_vec(self, a: 'Vector', b: 'Vector') -> None:
        self._elementwise(a, b, np.divide, 'div_elem_vec')

    def mul_vec(self, a: Matrix, trans: bool, b: 'Vector') -> None:
        """
        Receiver = a b, or a^T b when trans is set.

        Symmetric operands are read from their upper triangle and
        triangular operands from their stored triangle. The receiver may
        be b.

        Raises:
            DimensionError: If the inner dimensions disagree, or the
                            receiver length does not match
        """
        ar, ac = a.dims()
        br = b.len()
        inner, n = (ar, ac) if trans else (ac, ar)
        if inner != br:
            raise DimensionError(
                f"mul_vec: inner dimension mismatch {inner} vs {br}",
                expected=(inner,),
                actual=(br,),
            )

        w = Vector() if (a is self or b is self) else self
        w._reuse_as(n)
        x = b.raw_vector()

        if isinstance(a, RawSymmetricer):
            s = a.raw_symmetric()
            y = (np.triu(s) + np.triu(s, 1).T) @ x
        elif isinstance(a, RawTriangular):
            _, upper = a.triangle()
            t = a.raw_triangular()
            t = np.triu(t) if upper else np.tril(t)
            y = (t.T if trans else t) @ x
        elif isinstance(a, RawMatrixer):
            m = a.raw_matrix()
            y = (m.T if trans else m) @ x
        elif isinstance(a, Vectorer):
            if trans:
                y = np.array([a.col(c) @ x for c in range(ac)])
            else:
                y = np.array([a.row(r) @ x for r in range(ar)])
        elif trans:
            y = np.array([
                sum(a.at(i, c) * x[i] for i in range(ar)) for c in range(ac)
            ])
        else:
            y = np.array([
                sum(a.at(r, i) * x[i] for i in range(ac)) for r in range(ar)
            ])

        w.raw_vector()[:] = y
        if w is not self:
            self._assign(w)

    def solve_cholesky_vec(self, t: Any, b: 'Vector') -> None:
        """
        Receiver = A^-1 b where t holds the Cholesky factor of A.

        See pydense.decomposition.cholesky.solve_cholesky_vec.
        """
        from pydense.decomposition.cholesky import solve_cholesky_vec
        solve_cholesky_vec(self, t, b)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def equals_vec(self, b: 'Vector') -> bool:
        if self._n != b.len():
            return False
        return bool(np.array_equal(self.raw_vector(), b.raw_vector()))

    def equals_approx_vec(self, b: 'Vector', epsilon: float) -> bool:
        if self._n != b.len():
            return False
        return not np.any(np.abs(self.raw_vector() - b.raw_vector()) > epsilon)

    def __repr__(self) -> str:
        return f"Vector(len={self._n}, inc={self._inc})"


def new_vector(n: int, data: ArrayLike | None = None) -> Vector:
    """
    Create a length-n vector.

    Args:
        n: Length
        data: Optional values. A float64 ndarray is used as the backing
              store without copying.

    Raises:
        ValueError: If n is negative
        DimensionError: If len(data) != n
    """
    check_non_negative(n, 'n')
    if data is None:
        buf = np.zeros(n, dtype=np.float64)
    else:
        buf = check_array(data, 'data')
        check_length(buf, n, 'new_vector')
    return Vector._from_raw(buf, 1, n)
