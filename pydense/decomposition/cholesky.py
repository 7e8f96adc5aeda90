"""
Cholesky factorization and triangular solves.

A symmetric positive definite A is factored in place into a TriDense
holding either U with A = U^T U or L with A = L L^T. Failure to be
positive definite is an ordinary outcome reported as False, not an
exception.

The triangular solves delegate to scipy.linalg.solve_triangular.
"""

from typing import Any

import numpy as np
import scipy.linalg as sla
from numpy.typing import NDArray

from pydense.core.exceptions import (
    DimensionError,
    NotPositiveDefiniteError,
    SingularMatrixError,
    TriangleError,
)
from pydense.core.protocols import Matrix, RawSymmetricer, RawTriangular, Symmetric
from pydense.decomposition._common import check_rhs_rows, triangle_of
from pydense.matrix._storage import use
from pydense.matrix.triangular import TriDense


def copy_sym_into_triangle(t: TriDense, s: Symmetric) -> None:
    """
    Copy the triangle of s that t stores into t.

    Raises:
        DimensionError: If the orders differ
    """
    n, upper = t.triangle()
    if n != s.symmetric():
        raise DimensionError(
            f"cholesky: triangle of order {n}, symmetric of order {s.symmetric()}",
            expected=(n, n),
            actual=s.dims(),
        )
    if n == 0:
        return
    if isinstance(s, RawSymmetricer):
        src = s.raw_symmetric()
        full = np.triu(src) + np.triu(src, 1).T
    else:
        full = np.array([[s.at(i, j) for j in range(n)] for i in range(n)])
    idx = np.triu_indices(n) if upper else np.tril_indices(n)
    t.raw_triangular()[idx] = full[idx]


def _potrf(a: NDArray[np.float64], upper: bool) -> int:
    """
    Unblocked in-place Cholesky of the stored triangle of a.

    Returns:
        -1 on success, otherwise the index of the first pivot that is
        not positive
    """
    n = a.shape[0]
    for j in range(n):
        if upper:
            col = a[:j, j]
            ajj = a[j, j] - col @ col
        else:
            row = a[j, :j]
            ajj = a[j, j] - row @ row
        if ajj <= 0 or np.isnan(ajj):
            a[j, j] = ajj
            return j
        ajj = np.sqrt(ajj)
        a[j, j] = ajj
        if j < n - 1:
            if upper:
                a[j, j + 1:] -= col @ a[:j, j + 1:]
                a[j, j + 1:] /= ajj
            else:
                a[j + 1:, j] -= a[j + 1:, :j] @ row
                a[j + 1:, j] /= ajj
    return -1


def cholesky_into(t: TriDense, a: Symmetric, upper: bool) -> bool:
    """
    Factor a into t. See TriDense.cholesky.

    Raises:
        DimensionError: If a non-zero t has the wrong order
        TriangleError: If a non-zero t stores the other triangle
    """
    n = a.symmetric()
    if t.is_zero():
        t._data = use(t._data, n * n)
        t._n = n
        t._stride = n
        t._upper = upper
    else:
        if n != t._n:
            raise DimensionError(
                f"cholesky: receiver of order {t._n}, input of order {n}",
                expected=(n, n),
                actual=t.dims(),
            )
        if upper != t._upper:
            raise TriangleError(
                f"cholesky: receiver stores the {'upper' if t._upper else 'lower'} triangle"
            )
    copy_sym_into_triangle(t, a)
    return _potrf(t.raw_triangular(), upper) < 0


def cholesky(a: Symmetric, upper: bool = False) -> TriDense:
    """
    Cholesky factor of a as a new TriDense.

    Args:
        a: Symmetric positive definite matrix (not modified)
        upper: Return U with A = U^T U instead of L with A = L L^T

    Returns:
        The triangular factor

    Raises:
        NotPositiveDefiniteError: If a is not positive definite
    """
    t = TriDense()
    n = a.symmetric()
    t._data = np.zeros(n * n, dtype=np.float64)
    t._n = n
    t._stride = n
    t._upper = upper
    copy_sym_into_triangle(t, a)
    pivot = _potrf(t.raw_triangular(), upper)
    if pivot >= 0:
        raise NotPositiveDefiniteError(
            f"cholesky: leading minor of order {pivot + 1} is not positive definite",
            pivot=pivot,
        )
    return t


def _triangular_array(t: Any) -> tuple[NDArray[np.float64], bool]:
    """Dense copy of a Triangular with the unused half zeroed, and its side."""
    n, upper = t.triangle()
    if isinstance(t, RawTriangular):
        return triangle_of(t.raw_triangular(), upper), upper
    full = np.zeros((n, n), dtype=np.float64)
    for i in range(n):
        for j in (range(i, n) if upper else range(i + 1)):
            full[i, j] = t.at(i, j)
    return full, upper


def _trsm(
    tri: NDArray[np.float64],
    rhs: NDArray[np.float64],
    lower: bool,
    trans: bool,
) -> NDArray[np.float64]:
    if rhs.size == 0:
        return rhs
    try:
        return sla.solve_triangular(tri, rhs, trans='T' if trans else 'N', lower=lower)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(
            f"triangular solve: {e}", matrix_name='triangular factor'
        ) from e


def solve_tri(m: Any, a: Any, trans: bool, b: Matrix) -> None:
    """
    m = op(A)^-1 b for triangular A, op(A) = A^T when trans is set.

    Raises:
        DimensionError: If b does not have order(A) rows, or m has the
                        wrong shape
        SingularMatrixError: If A has a zero on its diagonal
    """
    n, _ = a.triangle()
    bm, bn = b.dims()
    check_rhs_rows(n, bm, 'solve_tri')
    m._reuse_as(bm, bn)
    if b is not m:
        m.copy(b)
    tri, upper = _triangular_array(a)
    raw = m.raw_matrix()
    raw[:] = _trsm(tri, raw.copy(), lower=not upper, trans=trans)


def solve_cholesky(m: Any, t: Any, b: Matrix) -> None:
    """
    m = A^-1 b where t is the Cholesky factor of A.

    Raises:
        DimensionError: If b does not have order(A) rows, or m has the
                        wrong shape
        SingularMatrixError: If the factor has a zero on its diagonal
    """
    n = t.dims()[1]
    bm, bn = b.dims()
    check_rhs_rows(n, bm, 'solve_cholesky')
    m._reuse_as(bm, bn)
    if b is not m:
        m.copy(b)
    tri, upper = _triangular_array(t)
    raw = m.raw_matrix()
    raw[:] = _cholesky_solve(tri, upper, raw.copy())


def solve_cholesky_vec(v: Any, t: Any, b: Any) -> None:
    """Vector form of solve_cholesky."""
    n = t.dims()[1]
    check_rhs_rows(n, b.len(), 'solve_cholesky_vec')
    v._reuse_as(n)
    if b is not v:
        v.copy_vec(b)
    tri, upper = _triangular_array(t)
    raw = v.raw_vector()
    raw[:] = _cholesky_solve(tri, upper, raw.copy())


def _cholesky_solve(
    tri: NDArray[np.float64],
    upper: bool,
    rhs: NDArray[np.float64],
) -> NDArray[np.float64]:
    # A = U^T U: solve U^T y = b then U x = y; A = L L^T: L y = b then L^T x = y
    y = _trsm(tri, rhs, lower=not upper, trans=upper)
    return _trsm(tri, y, lower=not upper, trans=not upper)
