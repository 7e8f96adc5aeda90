"""
LQ factorization by Householder reflections.

For an m x n matrix with m <= n, A = L Q where L is m x m lower
triangular and Q has orthonormal rows. Row k of the packed result holds
the normalised reflection vector from column k on; L's diagonal (the
row norms) is kept in l_diag.

Used by pydense.solvers.solve for underdetermined systems, where it
gives the minimum norm solution.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pydense.core.exceptions import DimensionError, SingularMatrixError
from pydense.decomposition._common import check_rhs_rows, hypot_norm
from pydense.decomposition.cholesky import _trsm
from pydense.matrix.dense import Dense, new_dense


@dataclass(frozen=True)
class LQFactor:
    """
    Packed LQ factors.

    Attributes:
        lq: L strictly below the diagonal, reflection vectors on and
            to the right of it
        l_diag: Diagonal of L
    """
    lq: Dense
    l_diag: NDArray[np.float64]

    def is_full_rank(self) -> bool:
        """True if L has no exact zero on its diagonal."""
        return bool(np.all(self.l_diag != 0))

    def l(self) -> Dense:
        """Lower triangular factor, m x m."""
        m, _ = self.lq.dims()
        out = new_dense(m, m)
        raw = out.raw_matrix()
        raw[:] = np.tril(self.lq.raw_matrix()[:, :m], -1)
        np.fill_diagonal(raw, self.l_diag)
        return out

    def _apply_qt(self, x: NDArray[np.float64]) -> None:
        lq = self.lq.raw_matrix()
        m, _ = self.lq.dims()
        for k in range(m - 1, -1, -1):
            hh = lq[k, k:]
            proj = hh @ x[k:]
            x[k:] -= np.outer(hh, proj)

    def solve(self, b: Dense) -> Dense:
        """
        Minimum norm solution of A X = b.

        b is not modified.

        Returns:
            New n x bn matrix X

        Raises:
            DimensionError: If b does not have m rows
            SingularMatrixError: If A is rank deficient
        """
        m, n = self.lq.dims()
        bm, bn = b.dims()
        check_rhs_rows(m, bm, 'lq.solve')
        if not self.is_full_rank():
            raise SingularMatrixError(
                "lq.solve: matrix is rank deficient",
                matrix_name='L',
                rank=int(np.count_nonzero(self.l_diag)),
                expected_rank=m,
            )

        out = new_dense(n, bn)
        out.copy(b)
        x = out.raw_matrix()
        x[:m] = _trsm(self.l().raw_matrix(), x[:m].copy(), lower=True, trans=False)
        self._apply_qt(x)
        return out


def lq(a: Dense) -> LQFactor:
    """
    Factor a as L Q.

    Args:
        a: m x n matrix with m <= n, overwritten with the packed factors

    Returns:
        LQFactor sharing a's storage

    Raises:
        DimensionError: If m > n
    """
    m, n = a.dims()
    if m > n:
        raise DimensionError(
            f"lq: need rows <= cols, got {m}x{n}",
            actual=(m, n),
        )
    raw = a.raw_matrix()
    l_diag = np.zeros(m, dtype=np.float64)

    with np.errstate(invalid='ignore'):
        for k in range(m):
            hh = raw[k, k:]
            norm = hypot_norm(hh.tolist())
            l_diag[k] = norm
            if norm == 0:
                continue
            hh_norm = norm * np.sqrt(1 - hh[0] / norm)
            if hh_norm == 0:
                hh[0] = 0
                continue
            hh[0] -= norm
            hh *= 1 / hh_norm
            if k < m - 1:
                sub = raw[k + 1:, k:]
                sub -= np.outer(sub @ hh, hh)

    return LQFactor(lq=a, l_diag=l_diag)
