"""
QR factorization by Householder reflections.

For an m x n matrix with m >= n, A = Q R where Q is m x n with
orthonormal columns and R is n x n upper triangular. Column k of the
packed result holds the k-th Householder vector; R's diagonal is kept
separately in r_diag.

Used by pydense.solvers.solve for overdetermined (least squares)
systems.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pydense.core.exceptions import DimensionError, SingularMatrixError
from pydense.decomposition._common import check_rhs_rows, hypot_norm
from pydense.matrix.dense import Dense, new_dense


@dataclass(frozen=True)
class QRFactor:
    """
    Packed QR factors.

    Attributes:
        qr: Householder vectors on and below the diagonal, R above it
        r_diag: Diagonal of R
    """
    qr: Dense
    r_diag: NDArray[np.float64]

    def is_full_rank(self) -> bool:
        """True if R has no exact zero on its diagonal."""
        return bool(np.all(self.r_diag != 0))

    def h(self) -> Dense:
        """Householder vectors, m x n lower trapezoidal."""
        m, n = self.qr.dims()
        out = new_dense(m, n)
        out.raw_matrix()[:] = np.tril(self.qr.raw_matrix())
        return out

    def r(self) -> Dense:
        """Upper triangular factor, n x n."""
        _, n = self.qr.dims()
        out = new_dense(n, n)
        raw = out.raw_matrix()
        raw[:] = np.triu(self.qr.raw_matrix()[:n], 1)
        np.fill_diagonal(raw, self.r_diag[:n])
        return out

    def q(self) -> Dense:
        """Orthogonal factor, m x n, accumulated from the reflections."""
        qr = self.qr.raw_matrix()
        m, n = self.qr.dims()
        out = new_dense(m, n)
        q = out.raw_matrix()
        for k in range(n - 1, -1, -1):
            q[k, k] = 1.0
            if qr[k, k] != 0:
                hk = qr[k:, k]
                s = (hk @ q[k:, k:]) / -qr[k, k]
                q[k:, k:] += np.outer(hk, s)
        return out

    def solve(self, b: Dense) -> Dense:
        """
        Least squares solution of A X = b.

        b is overwritten: Q^T b is formed in place and back substituted.

        Returns:
            View of the first n rows of b holding X

        Raises:
            DimensionError: If b does not have m rows
            SingularMatrixError: If A is rank deficient
        """
        qr = self.qr.raw_matrix()
        m, n = self.qr.dims()
        bm, bn = b.dims()
        check_rhs_rows(m, bm, 'qr.solve')
        if not self.is_full_rank():
            raise SingularMatrixError(
                "qr.solve: matrix is rank deficient",
                matrix_name='R',
                rank=int(np.count_nonzero(self.r_diag)),
                expected_rank=n,
            )

        x = b.raw_matrix()
        for k in range(n):
            hk = qr[k:, k]
            s = (hk @ x[k:]) / -qr[k, k]
            x[k:] += np.outer(hk, s)
        for k in range(n - 1, -1, -1):
            x[k] /= self.r_diag[k]
            x[:k] -= np.outer(qr[:k, k], x[k])
        return b.view(0, 0, n, bn)


def qr(a: Dense) -> QRFactor:
    """
    Factor a as Q R.

    Args:
        a: m x n matrix with m >= n, overwritten with the packed factors

    Returns:
        QRFactor sharing a's storage

    Raises:
        DimensionError: If m < n
    """
    m, n = a.dims()
    if m < n:
        raise DimensionError(
            f"qr: need rows >= cols, got {m}x{n}",
            actual=(m, n),
        )
    raw = a.raw_matrix()
    r_diag = np.zeros(n, dtype=np.float64)

    for k in range(n):
        norm = hypot_norm(raw[k:, k].tolist())
        if norm != 0:
            if raw[k, k] < 0:
                norm = -norm
            raw[k:, k] /= norm
            raw[k, k] += 1
            if k + 1 < n:
                hk = raw[k:, k]
                s = (hk @ raw[k:, k + 1:]) / -raw[k, k]
                raw[k:, k + 1:] += np.outer(hk, s)
        r_diag[k] = -norm

    return QRFactor(qr=a, r_diag=r_diag)
