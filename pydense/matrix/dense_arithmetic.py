"""
Arithmetic, norms and products for Dense matrices.

Every operation that reads operands dispatches on their capabilities in
the same order:

    1. RawMatrixer  - both operands expose strided storage; the whole
                      operation is one vectorised numpy call
    2. Vectorer     - operands copy out whole rows; one row at a time
    3. Matrix       - element-by-element through at()

The mixin relies on the storage methods defined by Dense (raw_matrix,
_reuse_as, ...). It carries no state of its own.
"""

import functools
import math
import sys
from contextlib import ExitStack
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from pydense.core.exceptions import DimensionError, NormOrderError
from pydense.core.precision import EXP_SCALING, EXP_TERMS
from pydense.core.protocols import Matrix, RawMatrixer, Vectorer
from pydense.core.validation import check_inner, check_same_shape, check_square
from pydense.matrix.workspace import workspace


ApplyFunc = Callable[[int, int, float], float]


class DenseArithmetic:
    """Operations mixed into Dense."""

    # ------------------------------------------------------------------
    # Reductions
    # ------------------------------------------------------------------

    def min(self) -> float:
        """Smallest element. Raises ValueError on an empty matrix."""
        return float(np.min(self.raw_matrix()))

    def max(self) -> float:
        """Largest element. Raises ValueError on an empty matrix."""
        return float(np.max(self.raw_matrix()))

    def sum(self) -> float:
        return float(np.sum(self.raw_matrix()))

    def trace(self) -> float:
        """
        Sum of the diagonal.

        Raises:
            SquareError: If the matrix is not square
        """
        check_square(self.dims(), 'trace')
        return float(np.trace(self.raw_matrix()))

    def norm(self, order: float) -> float:
        """
        Matrix norm of the receiver.

        Args:
            order: 1 (max column sum), -1 (min column sum), inf (max row
                   sum), -inf (min row sum), 0 (Frobenius), 2 (largest
                   singular value) or -2 (smallest singular value)

        Returns:
            The norm. The receiver is not modified.

        Raises:
            NormOrderError: For any other order
        """
        raw = self.raw_matrix()
        if order == 1:
            return float(max(np.sum(np.abs(raw), axis=0), default=0.0))
        if order == -1:
            return float(min(np.sum(np.abs(raw), axis=0), default=sys.float_info.max))
        if math.isinf(order) and order > 0:
            return float(max(np.sum(np.abs(raw), axis=1), default=0.0))
        if math.isinf(order):
            return float(min(np.sum(np.abs(raw), axis=1), default=sys.float_info.max))
        if order == 0:
            return functools.reduce(math.hypot, raw.ravel().tolist(), 0.0)
        if order == 2 or order == -2:
            from pydense.decomposition.svd import svd
            from pydense.matrix.dense import dense_copy_of

            factors = svd(dense_copy_of(self), want_u=False, want_v=False)
            return float(factors.sigma[0] if order == 2 else factors.sigma[-1])
        raise NormOrderError(f"norm: unsupported order {order}", order=order)

    def dot(self, b: Matrix) -> float:
        """
        Sum of the elementwise product of the receiver and b.

        Raises:
            DimensionError: If the shapes differ
        """
        check_same_shape(self.dims(), b.dims(), 'dot')
        raw = self.raw_matrix()
        if isinstance(b, RawMatrixer):
            return float(np.einsum('ij,ij->', raw, b.raw_matrix()))
        if isinstance(b, Vectorer):
            return float(sum(raw[r] @ b.row(r) for r in range(raw.shape[0])))
        rows, cols = self.dims()
        return float(sum(
            raw[r, c] * b.at(r, c) for r in range(rows) for c in range(cols)
        ))

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def equals(self, b: Matrix) -> bool:
        """True if b has the receiver's shape and identical elements."""
        if b.dims() != self.dims():
            return False
        raw = self.raw_matrix()
        if isinstance(b, RawMatrixer):
            return bool(np.array_equal(raw, b.raw_matrix()))
        if isinstance(b, Vectorer):
            return all(np.array_equal(raw[r], b.row(r)) for r in range(raw.shape[0]))
        rows, cols = self.dims()
        return all(
            raw[r, c] == b.at(r, c) for r in range(rows) for c in range(cols)
        )

    def equals_approx(self, b: Matrix, epsilon: float) -> bool:
        """
        True if b has the receiver's shape and no element differs by
        more than epsilon.
        """
        if b.dims() != self.dims():
            return False
        raw = self.raw_matrix()
        if isinstance(b, RawMatrixer):
            return not np.any(np.abs(raw - b.raw_matrix()) > epsilon)
        if isinstance(b, Vectorer):
            return not any(
                np.any(np.abs(raw[r] - b.row(r)) > epsilon)
                for r in range(raw.shape[0])
            )
        rows, cols = self.dims()
        return not any(
            abs(raw[r, c] - b.at(r, c)) > epsilon
            for r in range(rows) for c in range(cols)
        )

    # ------------------------------------------------------------------
    # Elementwise operations
    # ------------------------------------------------------------------

    def _elementwise(self, a: Matrix, b: Matrix, ufunc: np.ufunc, op: str) -> None:
        check_same_shape(a.dims(), b.dims(), op)
        rows, cols = a.dims()
        self._reuse_as(rows, cols)
        raw = self.raw_matrix()
        with np.errstate(divide='ignore', invalid='ignore'):
            if isinstance(a, RawMatrixer) and isinstance(b, RawMatrixer):
                ufunc(a.raw_matrix(), b.raw_matrix(), out=raw)
                return
            if isinstance(a, Vectorer) and isinstance(b, Vectorer):
                for r in range(rows):
                    raw[r] = ufunc(a.row(r), b.row(r))
                return
            for r in range(rows):
                for c in range(cols):
                    raw[r, c] = ufunc(np.float64(a.at(r, c)), np.float64(b.at(r, c)))

    def add(self, a: Matrix, b: Matrix) -> None:
        """Receiver = a + b. Raises DimensionError on a shape mismatch."""
        self._elementwise(a, b, np.add, 'add')

    def sub(self, a: Matrix, b: Matrix) -> None:
        """Receiver = a - b. Raises DimensionError on a shape mismatch."""
        self._elementwise(a, b, np.subtract, 'sub')

    def mul_elem(self, a: Matrix, b: Matrix) -> None:
        """Receiver = a * b elementwise."""
        self._elementwise(a, b, np.multiply, 'mul_elem')

    def div_elem(self, a: Matrix, b: Matrix) -> None:
        """Receiver = a / b elementwise. Division by zero gives +-inf or NaN."""
        self._elementwise(a, b, np.divide, 'div_elem')

    def scale(self, f: float, a: Matrix) -> None:
        """Receiver = f * a."""
        rows, cols = a.dims()
        self._reuse_as(rows, cols)
        raw = self.raw_matrix()
        if isinstance(a, RawMatrixer):
            np.multiply(a.raw_matrix(), f, out=raw)
        elif isinstance(a, Vectorer):
            for r in range(rows):
                raw[r] = f * a.row(r)
        else:
            for r in range(rows):
                for c in range(cols):
                    raw[r, c] = f * a.at(r, c)

    def apply(self, fn: ApplyFunc, a: Matrix) -> None:
        """
        Receiver[r, c] = fn(r, c, a[r, c]) for every element.

        fn is called once per element in row-major order.
        """
        rows, cols = a.dims()
        self._reuse_as(rows, cols)
        raw = self.raw_matrix()
        if isinstance(a, RawMatrixer):
            src = a.raw_matrix()
            for r in range(rows):
                for c in range(cols):
                    raw[r, c] = fn(r, c, float(src[r, c]))
        elif isinstance(a, Vectorer):
            for r in range(rows):
                row = a.row(r)
                raw[r] = [fn(r, c, float(v)) for c, v in enumerate(row)]
        else:
            for r in range(rows):
                for c in range(cols):
                    raw[r, c] = fn(r, c, a.at(r, c))

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def mul(self, a: Matrix, b: Matrix) -> None:
        """
        Receiver = a b.

        The receiver may be a or b, or share storage with them; in that
        case the product is formed in scratch space and copied back.

        Raises:
            DimensionError: If a.cols != b.rows, or the receiver shape
                            does not match
        """
        ar, ac = a.dims()
        br, bc = b.dims()
        check_inner(ac, br, 'mul')
        self._reuse_as(ar, bc)
        if self._shares_storage(a) or self._shares_storage(b):
            with workspace(ar, bc) as w:
                _mul_into(w.raw_matrix(), a, False, b, False)
                self.copy(w)
            return
        _mul_into(self.raw_matrix(), a, False, b, False)

    def mul_trans(self, a: Matrix, a_trans: bool, b: Matrix, b_trans: bool) -> None:
        """
        Receiver = op(a) op(b), where op transposes when the flag is set.

        When a and b are the same operand with opposite flags the result
        is exactly symmetric.

        Raises:
            DimensionError: If the inner dimensions disagree, or the
                            receiver shape does not match
        """
        ar, ac = a.dims()
        if a_trans:
            ar, ac = ac, ar
        br, bc = b.dims()
        if b_trans:
            br, bc = bc, br
        check_inner(ac, br, 'mul_trans')
        self._reuse_as(ar, bc)
        if self._shares_storage(a) or self._shares_storage(b):
            with workspace(ar, bc) as w:
                _mul_into(w.raw_matrix(), a, a_trans, b, b_trans)
                self.copy(w)
            return
        _mul_into(self.raw_matrix(), a, a_trans, b, b_trans)

    def rank_one(self, a: Matrix, alpha: float, x: Any, y: Any) -> None:
        """
        Receiver = a + alpha x y^T.

        Raises:
            DimensionError: If len(x) != a.rows or len(y) != a.cols
        """
        ar, ac = a.dims()
        if x.len() != ar or y.len() != ac:
            raise DimensionError(
                f"rank_one: vectors of length {x.len()}, {y.len()} "
                f"do not fit {ar}x{ac}",
                expected=(ar, ac),
                actual=(x.len(), y.len()),
            )
        update = alpha * np.outer(x.raw_vector(), y.raw_vector())
        if a is not self:
            self._reuse_as(ar, ac)
            self.copy(a)
        self.raw_matrix()[:] += update

    def outer(self, x: Any, y: Any) -> None:
        """Receiver = x y^T."""
        r, c = x.len(), y.len()
        self._reuse_as_zeroed(r, c)
        self.raw_matrix()[:] = np.outer(x.raw_vector(), y.raw_vector())

    # ------------------------------------------------------------------
    # Powers
    # ------------------------------------------------------------------

    def exp(self, a: Matrix, terms: int = EXP_TERMS, scaling: int = EXP_SCALING) -> None:
        """
        Receiver = e^a by scaling and squaring.

        a is scaled by 2**-scaling, the Taylor series is summed to the
        given number of terms, and the result is squared scaling times.

        Raises:
            SquareError: If a is not square
        """
        r, c = a.dims()
        check_square((r, c), 'exp')
        with ExitStack() as stack:
            w = stack.enter_context(workspace(r, r, clear=True))
            np.fill_diagonal(w.raw_matrix(), 1.0)
            small = stack.enter_context(workspace(r, r))
            small.scale(2.0 ** -scaling, a)
            power = stack.enter_context(workspace(r, r))
            power.copy(small)
            tmp = stack.enter_context(workspace(r, r))

            fact = 1.0
            for i in range(1, terms):
                fact *= i
                np.divide(power.raw_matrix(), fact, out=tmp.raw_matrix())
                w.add(w, tmp)
                if i < terms - 1:
                    tmp.mul(power, small)
                    tmp, power = power, tmp

            for _ in range(scaling):
                tmp.mul(w, w)
                tmp, w = w, tmp

            self._reuse_as(r, r)
            self.copy(w)

    def pow(self, a: Matrix, n: int) -> None:
        """
        Receiver = a**n by repeated squaring.

        Raises:
            ValueError: If n is negative
            SquareError: If a is not square
        """
        if n < 0:
            raise ValueError(f"pydense: illegal power {n}")
        r, c = a.dims()
        check_square((r, c), 'pow')
        self._reuse_as(r, c)

        if n == 0:
            raw = self.raw_matrix()
            raw[:] = 0
            np.fill_diagonal(raw, 1.0)
            return
        if n == 1:
            self.copy(a)
            return
        if n == 2:
            self.mul(a, a)
            return

        with workspace(r, r) as w, workspace(r, r) as s, workspace(r, r) as x:
            w.copy(a)
            s.copy(a)
            n -= 1
            while n > 0:
                if n & 1:
                    x.mul(w, s)
                    w.copy(x)
                if n != 1:
                    x.mul(s, s)
                    s.copy(x)
                n >>= 1
            self.copy(w)


def _mul_into(
    out: NDArray[np.float64],
    a: Matrix,
    a_trans: bool,
    b: Matrix,
    b_trans: bool,
) -> None:
    """Write op(a) op(b) into out, which must not alias a or b."""
    if isinstance(a, RawMatrixer) and isinstance(b, RawMatrixer):
        opa = a.raw_matrix().T if a_trans else a.raw_matrix()
        opb = b.raw_matrix().T if b_trans else b.raw_matrix()
        prod = opa @ opb
        if a is b and a_trans != b_trans:
            prod = np.triu(prod) + np.triu(prod, 1).T
        out[:] = prod
        return

    rows, cols = out.shape
    if isinstance(a, Vectorer) and isinstance(b, Vectorer):
        left = a.col if a_trans else a.row
        right = b.row if b_trans else b.col
        right_vectors = [right(c) for c in range(cols)]
        for r in range(rows):
            lv = left(r)
            for c in range(cols):
                out[r, c] = lv @ right_vectors[c]
        return

    inner = a.dims()[0] if a_trans else a.dims()[1]

    def a_at(i: int, k: int) -> float:
        return a.at(k, i) if a_trans else a.at(i, k)

    def b_at(k: int, j: int) -> float:
        return b.at(j, k) if b_trans else b.at(k, j)

    for r in range(rows):
        for c in range(cols):
            out[r, c] = sum(a_at(r, k) * b_at(k, c) for k in range(inner))
