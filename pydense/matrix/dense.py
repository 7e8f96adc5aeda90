"""
Dense row-major matrix storage.

A Dense matrix is a window onto a flat float64 buffer: element (i, j)
lives at data[i*stride + j]. Several matrices may share one buffer, which
is how views, row views and column views work. Writes through any of them
are visible in all of them.

Receivers follow the reuse pattern. A receiver in the zero state (as
returned by Dense() or after reset()) adopts whatever shape the operation
produces. A receiver that already has a shape must match the result
exactly or DimensionError is raised.

Design principles:
    - Contract violations (bad shape, bad index) raise immediately
    - Buffers are reused whenever the capacity allows
    - No operation allocates behind the caller's back except growth
      beyond capacity and aliasing-safe scratch space
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pydense.core.exceptions import (
    DimensionError,
    IndexOutOfRangeError,
    StrideError,
)
from pydense.core.protocols import (
    Matrix,
    RawMatrixer,
    RawSymmetricer,
    RawTriangular,
    RawVectorer,
    Vectorer,
)
from pydense.core.validation import (
    check_array,
    check_col,
    check_length,
    check_non_negative,
    check_row,
    check_same_shape,
    check_square,
)
from pydense.matrix import io as _io
from pydense.matrix._storage import (
    empty_buffer,
    flat_from_2d,
    strided,
    use,
    use_zeroed,
)
from pydense.matrix.dense_arithmetic import DenseArithmetic
from pydense.matrix.format import format_matrix, parse_format_spec
from pydense.matrix.vector import Vector


class Dense(DenseArithmetic):
    """
    General dense matrix.

    Dense() is the zero state: no shape, no storage commitment. Use
    new_dense() to build a matrix of a given shape.
    """

    def __init__(self) -> None:
        self._data: NDArray[np.float64] = empty_buffer()
        self._rows = 0
        self._cols = 0
        self._stride = 0
        self._cap_rows = 0
        self._cap_cols = 0

    @classmethod
    def _from_buffer(
        cls,
        data: NDArray[np.float64],
        rows: int,
        cols: int,
        stride: int,
    ) -> 'Dense':
        m = cls()
        m._data = data
        m._rows = rows
        m._cols = cols
        m._stride = stride
        m._cap_rows = rows
        m._cap_cols = cols
        return m

    # ------------------------------------------------------------------
    # Shape and element access
    # ------------------------------------------------------------------

    def dims(self) -> tuple[int, int]:
        return self._rows, self._cols

    def caps(self) -> tuple[int, int]:
        """Maximum rows and columns the matrix can grow to without allocating."""
        return self._cap_rows, self._cap_cols

    def is_zero(self) -> bool:
        """True if the matrix is in the zero state."""
        return self._stride == 0

    def at(self, r: int, c: int) -> float:
        check_row(r, self._rows)
        check_col(c, self._cols)
        return float(self._data[r * self._stride + c])

    def set(self, r: int, c: int, v: float) -> None:
        check_row(r, self._rows)
        check_col(c, self._cols)
        self._data[r * self._stride + c] = v

    def raw_matrix(self) -> NDArray[np.float64]:
        """
        Writable (rows, cols) ndarray aliasing the matrix storage.

        The returned array stays valid until the matrix is reset or
        reallocated by growth.
        """
        return strided(self._data, self._rows, self._cols, self._stride)

    def set_raw_matrix(self, a: NDArray[np.float64]) -> None:
        """
        Make the matrix a window onto an existing 2-D float64 array.

        No data is copied; later writes to either side are shared.

        Raises:
            StrideError: If a is not float64, or its columns are not
                         contiguous, or its rows overlap
        """
        if not isinstance(a, np.ndarray) or a.ndim != 2:
            raise StrideError("set_raw_matrix: expected a 2-D ndarray")
        data, stride = flat_from_2d(a)
        if data is None:
            raise StrideError(
                f"set_raw_matrix: unusable layout dtype={a.dtype} strides={a.strides}"
            )
        rows, cols = a.shape
        self._data = data
        self._rows = rows
        self._cols = cols
        self._stride = stride
        self._cap_rows = rows
        self._cap_cols = cols

    def to_numpy(self) -> NDArray[np.float64]:
        """Copy of the matrix as a C-contiguous (rows, cols) array."""
        return np.array(self.raw_matrix(), dtype=np.float64, copy=True)

    def reset(self) -> None:
        """
        Return the matrix to the zero state, keeping the buffer for reuse.

        If the matrix is a view, reusing it after reset writes into the
        owner's storage, including elements outside the old window.
        """
        self._rows = 0
        self._cols = 0
        self._stride = 0
        self._cap_rows = 0
        self._cap_cols = 0

    def _reuse_as(self, r: int, c: int) -> None:
        if self.is_zero():
            self._data = use(self._data, r * c)
            self._set_shape(r, c)
            return
        if (r, c) != (self._rows, self._cols):
            raise DimensionError(
                f"receiver is {self._rows}x{self._cols}, result is {r}x{c}",
                expected=(r, c),
                actual=(self._rows, self._cols),
            )

    def _reuse_as_zeroed(self, r: int, c: int) -> None:
        if self.is_zero():
            self._data = use_zeroed(self._data, r * c)
            self._set_shape(r, c)
            return
        self._reuse_as(r, c)
        self.raw_matrix()[:] = 0

    def _set_shape(self, r: int, c: int) -> None:
        self._rows = r
        self._cols = c
        self._stride = c
        self._cap_rows = r
        self._cap_cols = c

    def _assign(self, other: 'Dense') -> None:
        """Take over other's storage and shape."""
        self._data = other._data
        self._rows = other._rows
        self._cols = other._cols
        self._stride = other._stride
        self._cap_rows = other._cap_rows
        self._cap_cols = other._cap_cols

    def _shares_storage(self, a: Any) -> bool:
        """True if writing the receiver could change the operand a."""
        if a is self:
            return True
        if self.is_zero() or self._rows == 0 or self._cols == 0:
            return False
        if isinstance(a, RawMatrixer):
            other = a.raw_matrix()
        elif isinstance(a, RawVectorer):
            other = a.raw_vector()
        elif isinstance(a, RawSymmetricer):
            other = a.raw_symmetric()
        elif isinstance(a, RawTriangular):
            other = a.raw_triangular()
        else:
            return False
        return bool(np.may_share_memory(self.raw_matrix(), other))

    # ------------------------------------------------------------------
    # Rows, columns and views
    # ------------------------------------------------------------------

    def row(
        self,
        i: int,
        dst: NDArray[np.float64] | None = None,
    ) -> NDArray[np.float64]:
        """
        Copy row i.

        Args:
            i: Row index
            dst: Optional destination; min(len(dst), cols) elements are
                 written into it

        Returns:
            The copied elements (dst[:n] when dst is given)
        """
        check_row(i, self._rows)
        start = i * self._stride
        if dst is None:
            return self._data[start:start + self._cols].copy()
        n = min(len(dst), self._cols)
        dst[:n] = self._data[start:start + n]
        return dst[:n]

    def col(
        self,
        j: int,
        dst: NDArray[np.float64] | None = None,
    ) -> NDArray[np.float64]:
        """Copy column j. See row() for the meaning of dst."""
        check_col(j, self._cols)
        column = self.raw_matrix()[:, j]
        if dst is None:
            return column.copy()
        n = min(len(dst), self._rows)
        dst[:n] = column[:n]
        return dst[:n]

    def set_row(self, i: int, src: ArrayLike) -> int:
        """Copy src into row i. Returns the number of elements copied."""
        check_row(i, self._rows)
        src = np.asarray(src, dtype=np.float64)
        n = min(len(src), self._cols)
        start = i * self._stride
        self._data[start:start + n] = src[:n]
        return n

    def set_col(self, j: int, src: ArrayLike) -> int:
        """Copy src into column j. Returns the number of elements copied."""
        check_col(j, self._cols)
        src = np.asarray(src, dtype=np.float64)
        n = min(len(src), self._rows)
        self.raw_matrix()[:n, j] = src[:n]
        return n

    def raw_row_view(self, i: int) -> NDArray[np.float64]:
        """Writable 1-D array aliasing row i."""
        check_row(i, self._rows)
        start = i * self._stride
        return self._data[start:start + self._cols]

    def row_view(self, i: int) -> Vector:
        """Vector sharing storage with row i."""
        check_row(i, self._rows)
        start = i * self._stride
        return Vector._from_raw(self._data[start:start + self._cols], 1, self._cols)

    def col_view(self, j: int) -> Vector:
        """Vector sharing storage with column j."""
        check_col(j, self._cols)
        end = (self._rows - 1) * self._stride + j + 1 if self._rows else j
        return Vector._from_raw(self._data[j:end], self._stride, self._rows)

    def view(self, i: int, j: int, r: int, c: int) -> 'Dense':
        """
        r x c sub-matrix starting at (i, j), sharing storage.

        The view may be grown up to the owner's capacity minus (i, j).

        Raises:
            IndexOutOfRangeError: If the window is empty or does not fit
                                  within the capacity
        """
        mr, mc = self._cap_rows, self._cap_cols
        if i < 0 or i >= mr or j < 0 or j >= mc:
            raise IndexOutOfRangeError(
                f"view: origin ({i}, {j}) outside {mr}x{mc}"
            )
        if r <= 0 or i + r > mr or c <= 0 or j + c > mc:
            raise IndexOutOfRangeError(
                f"view: {r}x{c} window at ({i}, {j}) exceeds {mr}x{mc}"
            )
        t = Dense()
        t._data = self._data[i * self._stride + j:]
        t._rows = r
        t._cols = c
        t._stride = self._stride
        t._cap_rows = mr - i
        t._cap_cols = mc - j
        return t

    def grow(self, r: int, c: int) -> 'Dense':
        """
        Matrix with r more rows and c more columns.

        Within capacity the result shares the receiver's buffer;
        otherwise a new buffer is allocated and the whole previously
        capacitated region is copied into it. The receiver is not
        changed.

        Raises:
            IndexOutOfRangeError: If r or c is negative
        """
        if r < 0 or c < 0:
            raise IndexOutOfRangeError(f"grow: negative increment ({r}, {c})")
        if r == 0 and c == 0:
            return self

        r += self._rows
        c += self._cols

        if self.is_zero():
            t = Dense()
            t._data = np.zeros(r * c, dtype=np.float64)
            t._set_shape(r, c)
            return t

        if r > self._cap_rows or c > self._cap_cols:
            cr = max(r, self._cap_rows)
            cc = max(c, self._cap_cols)
            t = Dense()
            t._data = np.zeros(cr * cc, dtype=np.float64)
            t._rows = r
            t._cols = c
            t._stride = cc
            t._cap_rows = cr
            t._cap_cols = cc
            old = strided(self._data, self._cap_rows, self._cap_cols, self._stride)
            strided(t._data, cr, cc, cc)[:self._cap_rows, :self._cap_cols] = old
            return t

        t = Dense()
        t._data = self._data
        t._rows = r
        t._cols = c
        t._stride = self._stride
        t._cap_rows = r
        t._cap_cols = c
        return t

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------

    def clone(self, a: Matrix) -> None:
        """
        Make the receiver an independent copy of a.

        Any previous shape is discarded. Storage is never shared with a.
        """
        r, c = a.dims()
        if isinstance(a, RawMatrixer):
            data = np.array(a.raw_matrix(), dtype=np.float64).reshape(-1)
            self._data = data
            self._set_shape(r, c)
            return

        if isinstance(a, Vectorer):
            rows = [a.row(i) for i in range(r)]
            self._data = use(self._data, r * c)
            self._set_shape(r, c)
            raw = self.raw_matrix()
            for i, values in enumerate(rows):
                raw[i] = values
            return

        values = [[a.at(i, j) for j in range(c)] for i in range(r)]
        self._data = np.array(values, dtype=np.float64).reshape(-1)
        self._set_shape(r, c)

    def copy(self, a: Matrix) -> tuple[int, int]:
        """
        Copy as much of a as fits into the receiver.

        Overlapping storage is handled.

        Returns:
            (rows, cols) of the copied region
        """
        ar, ac = a.dims()
        r = min(ar, self._rows)
        c = min(ac, self._cols)
        if r == 0 or c == 0:
            return r, c
        raw = self.raw_matrix()
        if isinstance(a, RawMatrixer):
            src = a.raw_matrix()[:r, :c]
            if np.may_share_memory(raw, src):
                src = src.copy()
            raw[:r, :c] = src
        elif isinstance(a, Vectorer):
            for i in range(r):
                raw[i, :c] = a.row(i)[:c]
        else:
            for i in range(r):
                for j in range(c):
                    raw[i, j] = a.at(i, j)
        return r, c

    def t_copy(self, a: Matrix) -> None:
        """
        Receiver = a^T.

        When a is the receiver itself it is transposed into fresh storage
        and takes the transposed shape.

        Raises:
            DimensionError: If a non-zero receiver is not cols x rows of a
        """
        ar, ac = a.dims()
        w = Dense() if a is self else self
        w._reuse_as(ac, ar)
        raw = w.raw_matrix()
        if isinstance(a, RawMatrixer):
            src = a.raw_matrix().T
            if np.may_share_memory(raw, src):
                src = src.copy()
            raw[:] = src
        elif isinstance(a, Vectorer):
            for i in range(ar):
                raw[:, i] = a.row(i)
        else:
            for i in range(ar):
                for j in range(ac):
                    raw[j, i] = a.at(i, j)
        if w is not self:
            self._assign(w)

    def u(self, a: Matrix) -> None:
        """
        Receiver = upper triangle of the square matrix a.

        Raises:
            SquareError: If a is not square
        """
        check_square(a.dims(), 'u')
        self._triangle_of(a, upper=True)

    def l(self, a: Matrix) -> None:
        """
        Receiver = lower triangle of the square matrix a.

        Raises:
            SquareError: If a is not square
        """
        check_square(a.dims(), 'l')
        self._triangle_of(a, upper=False)

    def _triangle_of(self, a: Matrix, upper: bool) -> None:
        n = a.dims()[0]
        if a is self:
            raw = self.raw_matrix()
            if upper:
                raw[np.tril_indices(n, -1)] = 0
            else:
                raw[np.triu_indices(n, 1)] = 0
            return
        self._reuse_as(n, n)
        raw = self.raw_matrix()
        keep = np.triu if upper else np.tril
        if isinstance(a, RawMatrixer):
            raw[:] = keep(a.raw_matrix())
            return
        raw[:] = 0
        if isinstance(a, Vectorer):
            for i in range(n):
                values = a.row(i)
                if upper:
                    raw[i, i:] = values[i:]
                else:
                    raw[i, :i + 1] = values[:i + 1]
            return
        for i in range(n):
            cols = range(i, n) if upper else range(i + 1)
            for j in cols:
                raw[i, j] = a.at(i, j)

    def stack(self, a: Matrix, b: Matrix) -> None:
        """
        Receiver = a on top of b.

        Raises:
            DimensionError: If the column counts differ or the receiver
                            is one of the operands
        """
        ar, ac = a.dims()
        br, bc = b.dims()
        if ac != bc or a is self or b is self:
            raise DimensionError(
                f"stack: cannot stack {ar}x{ac} on {br}x{bc}",
                expected=(br, ac),
                actual=(br, bc),
            )
        self._reuse_as(ar + br, ac)
        self.copy(a)
        self.view(ar, 0, br, bc).copy(b)

    def augment(self, a: Matrix, b: Matrix) -> None:
        """
        Receiver = a with b appended on the right.

        Raises:
            DimensionError: If the row counts differ or the receiver is
                            one of the operands
        """
        ar, ac = a.dims()
        br, bc = b.dims()
        if ar != br or a is self or b is self:
            raise DimensionError(
                f"augment: cannot augment {ar}x{ac} with {br}x{bc}",
                expected=(ar, bc),
                actual=(br, bc),
            )
        self._reuse_as(ar, ac + bc)
        self.copy(a)
        self.view(0, ac, br, bc).copy(b)

    # ------------------------------------------------------------------
    # Triangular and Cholesky solves
    # ------------------------------------------------------------------

    def solve_cholesky(self, t: Any, b: Matrix) -> None:
        """
        Receiver = A^-1 b where t holds the Cholesky factor of A.

        See pydense.decomposition.cholesky.solve_cholesky.
        """
        from pydense.decomposition.cholesky import solve_cholesky
        solve_cholesky(self, t, b)

    def solve_tri(self, a: Any, trans: bool, b: Matrix) -> None:
        """
        Receiver = op(a)^-1 b for triangular a.

        See pydense.decomposition.cholesky.solve_tri.
        """
        from pydense.decomposition.cholesky import solve_tri
        solve_tri(self, a, trans, b)

    # ------------------------------------------------------------------
    # Serialisation and display
    # ------------------------------------------------------------------

    def marshal_binary(self) -> bytes:
        """Encode as little-endian int64 rows, int64 cols, float64 data."""
        return _io.marshal_dense(self)

    def unmarshal_binary(self, data: bytes) -> None:
        """
        Decode a payload produced by marshal_binary into the receiver.

        Raises:
            ValueError: If the receiver is not in the zero state
            FormatError: If the payload is truncated or malformed
        """
        _io.unmarshal_dense(self, data)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Dense':
        m = cls()
        m.unmarshal_binary(data)
        return m

    def __bytes__(self) -> bytes:
        return self.marshal_binary()

    def __str__(self) -> str:
        return format_matrix(self)

    def __repr__(self) -> str:
        return f"Dense(dims={self.dims()}, stride={self._stride})"

    def __format__(self, spec: str) -> str:
        if not spec:
            return str(self)
        return format_matrix(self, **parse_format_spec(spec))


def new_dense(r: int, c: int, data: ArrayLike | None = None) -> Dense:
    """
    Create an r x c matrix.

    Args:
        r: Number of rows
        c: Number of columns
        data: Optional row-major values. A float64 ndarray is used as
              the backing store without copying.

    Returns:
        New Dense; zero-filled when data is None

    Raises:
        ValueError: If r or c is negative
        DimensionError: If len(data) != r*c
    """
    check_non_negative(r, 'r')
    check_non_negative(c, 'c')
    if data is None:
        buf = np.zeros(r * c, dtype=np.float64)
    else:
        buf = check_array(data, 'data')
        check_length(buf, r * c, 'new_dense')
    return Dense._from_buffer(buf, r, c, c)


def dense_copy_of(a: Matrix) -> Dense:
    """Independent Dense copy of any matrix."""
    m = Dense()
    m.clone(a)
    return m

