"""
LU factorization with partial pivoting.

Left-looking (Crout/Doolittle) elimination: column j of the factor is
formed from the already finished columns, then the largest remaining
entry is swapped onto the diagonal. The factorization itself never
fails; singularity shows up as an exact zero on U's diagonal and is
reported by is_singular() and solve().

Design principles:
    - The input matrix is overwritten with the packed factors
    - L has a unit diagonal that is not stored
    - pivot[i] is the original row now in position i
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pydense.core.exceptions import SingularMatrixError
from pydense.core.validation import check_square
from pydense.decomposition._common import check_rhs_rows
from pydense.matrix.dense import Dense, new_dense


@dataclass(frozen=True)
class LUFactors:
    """
    Packed LU factors of an m x n matrix.

    Attributes:
        lu: Strict lower part holds L's multipliers, upper part holds U
        pivot: Row permutation, length m
        sign: +1 or -1, the parity of the permutation
    """
    lu: Dense
    pivot: NDArray[np.intp]
    sign: int

    def is_singular(self) -> bool:
        """True if U has an exact zero on its diagonal."""
        m, n = self.lu.dims()
        diag = np.diagonal(self.lu.raw_matrix())[:min(m, n)]
        return bool(np.any(diag == 0))

    def l(self) -> Dense:
        """Unit lower triangular factor, m x min(m, n)."""
        m, n = self.lu.dims()
        k = min(m, n)
        out = new_dense(m, k)
        raw = out.raw_matrix()
        raw[:] = np.tril(self.lu.raw_matrix()[:, :k], -1)
        np.fill_diagonal(raw, 1.0)
        return out

    def u(self) -> Dense:
        """Upper triangular factor, m x n."""
        m, n = self.lu.dims()
        out = new_dense(m, n)
        out.raw_matrix()[:] = np.triu(self.lu.raw_matrix())
        return out

    def det(self) -> float:
        """
        Determinant of the factored matrix.

        Raises:
            SquareError: If the factored matrix was not square
        """
        check_square(self.lu.dims(), 'det')
        return float(self.sign * np.prod(np.diagonal(self.lu.raw_matrix())))

    def solve(self, b: Dense) -> Dense:
        """
        Solve A X = b.

        b is overwritten with the solution and returned.

        Raises:
            DimensionError: If b does not have m rows
            SingularMatrixError: If the factored matrix is singular
        """
        lu = self.lu.raw_matrix()
        m, n = self.lu.dims()
        bm, _ = b.dims()
        check_rhs_rows(m, bm, 'lu.solve')
        if self.is_singular():
            raise SingularMatrixError(
                "lu.solve: matrix is singular",
                matrix_name='U',
                expected_rank=min(m, n),
            )

        x = b.raw_matrix()
        x[:] = x[self.pivot]

        for k in range(n):
            x[k + 1:n] -= np.outer(lu[k + 1:n, k], x[k])
        for k in range(n - 1, -1, -1):
            x[k] /= lu[k, k]
            x[:k] -= np.outer(lu[:k, k], x[k])
        return b


def lu(a: Dense) -> LUFactors:
    """
    Factor a as P A = L U.

    Args:
        a: m x n matrix, overwritten with the packed factors

    Returns:
        LUFactors sharing a's storage
    """
    m, n = a.dims()
    raw = a.raw_matrix()
    piv = np.arange(m, dtype=np.intp)
    sign = 1

    for j in range(n):
        col = raw[:, j].copy()

        # rows above the diagonal depend on the entries just computed
        for i in range(min(j + 1, m)):
            col[i] -= raw[i, :i] @ col[:i]
        if j + 1 < m:
            col[j + 1:] -= raw[j + 1:, :j] @ col[:j]
        raw[:, j] = col

        if j < m:
            p = j + int(np.argmax(np.abs(col[j:])))
            if p != j:
                raw[[p, j]] = raw[[j, p]]
                piv[[p, j]] = piv[[j, p]]
                sign = -sign
            if raw[j, j] != 0:
                raw[j + 1:, j] /= raw[j, j]

    return LUFactors(lu=a, pivot=piv, sign=sign)
