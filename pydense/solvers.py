"""
Determinant, inverse and linear solves for general matrices.

These functions pick a decomposition by shape. They copy their operands
first, so unlike the decompositions themselves they never modify the
caller's matrices.

Public API:
    det(a) -> float
    inverse(a) -> Dense
    solve(a, b) -> Dense
    maybe(fn) -> PyDenseError | None
    maybe_float(fn) -> (float, PyDenseError | None)
"""

from typing import Callable

import numpy as np

from pydense.core.exceptions import PyDenseError
from pydense.core.protocols import Deter, Matrix
from pydense.decomposition.lq import lq
from pydense.decomposition.lu import lu
from pydense.decomposition.qr import qr
from pydense.matrix.dense import Dense, dense_copy_of, new_dense


def det(a: Matrix) -> float:
    """
    Determinant of a.

    Uses a.det() when a can compute its own determinant, otherwise an
    LU decomposition of a copy.

    Raises:
        SquareError: If a is not square
    """
    if isinstance(a, Deter):
        return a.det()
    return lu(dense_copy_of(a)).det()


def inverse(a: Matrix) -> Dense:
    """
    Inverse of a, or its pseudo-inverse when a is not square.

    Solves A X = I with I the identity of a's row count.

    Raises:
        SingularMatrixError: If a is singular or rank deficient
    """
    m, _ = a.dims()
    eye = new_dense(m, m)
    np.fill_diagonal(eye.raw_matrix(), 1.0)
    return solve(a, eye)


def solve(a: Matrix, b: Matrix) -> Dense:
    """
    Solve A X = B.

    Square a uses LU, tall a the QR least squares solution and wide a
    the LQ minimum norm solution.

    Args:
        a: Coefficient matrix (m x n)
        b: Right-hand side (m x k)

    Returns:
        New n x k matrix X

    Raises:
        DimensionError: If b does not have m rows
        SingularMatrixError: If a is singular or rank deficient
    """
    m, n = a.dims()
    if m == n:
        return lu(dense_copy_of(a)).solve(dense_copy_of(b))
    if m > n:
        # qr solve returns a view on the copied right-hand side
        return dense_copy_of(qr(dense_copy_of(a)).solve(dense_copy_of(b)))
    return lq(dense_copy_of(a)).solve(b)


def maybe(fn: Callable[[], object]) -> PyDenseError | None:
    """
    Call fn and return the PyDenseError it raises, or None.

    Any other exception propagates.

    Example:
        >>> err = maybe(lambda: c.mul(a, b))
        >>> if err is not None:
        ...     handle(err)
    """
    try:
        fn()
    except PyDenseError as err:
        return err
    return None


def maybe_float(fn: Callable[[], float]) -> tuple[float, PyDenseError | None]:
    """
    Call fn and return (value, None), or (nan, error) if it raised a
    PyDenseError. Any other exception propagates.
    """
    try:
        return fn(), None
    except PyDenseError as err:
        return float('nan'), err
