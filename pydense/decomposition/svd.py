"""
Singular value decomposition.

Golub-Kahan bidiagonalisation by Householder reflections followed by
implicitly shifted QR sweeps on the bidiagonal, after the EISPACK/LINPACK
routine as adapted by Jama. A = U diag(sigma) V^T with sigma
non-increasing and non-negative.

Each sweep inspects the bidiagonal and chooses one of four actions:

    1. deflate a negligible sigma by chasing e[p-2] out of the matrix
    2. split at a negligible sigma[k]
    3. one QR step with the shift taken from the trailing 2x2 block
    4. accept a converged sigma: make it positive and move it into order

Design principles:
    - The input is overwritten (and transposed in place when it is wide)
    - Every sweep counts against max_iter; exceeding it raises
      ConvergenceError instead of looping
"""

import warnings
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pydense.core.exceptions import ConvergenceError
from pydense.core.precision import EPSILON, SMALL, default_max_iter
from pydense.decomposition._common import hypot_norm
from pydense.matrix.dense import Dense, new_dense


@dataclass(frozen=True)
class SVDFactors:
    """
    Result of svd().

    Attributes:
        u: Left singular vectors (None if not requested)
        sigma: Singular values, non-increasing
        v: Right singular vectors (None if not requested)
        m: Row count of the (possibly transposed) factored matrix
        n: Column count of the (possibly transposed) factored matrix
    """
    u: Dense | None
    sigma: NDArray[np.float64]
    v: Dense | None
    m: int
    n: int

    def s(self) -> Dense:
        """Singular values as a square diagonal matrix."""
        k = len(self.sigma)
        out = new_dense(k, k)
        np.fill_diagonal(out.raw_matrix(), self.sigma)
        return out

    def rank(self, epsilon: float = EPSILON) -> int:
        """
        Number of singular values above max(m, len(sigma)) * sigma[0] * epsilon.
        """
        if len(self.sigma) == 0:
            return 0
        tol = max(self.m, len(self.sigma)) * self.sigma[0] * epsilon
        return int(np.count_nonzero(self.sigma > tol))

    def cond(self) -> float:
        """
        Two-norm condition number sigma[0] / sigma[min(m, n) - 1].

        Returns inf, with a warning, when the smallest singular value is
        exactly zero.
        """
        smallest = self.sigma[min(self.m, self.n) - 1]
        if smallest == 0:
            warnings.warn(
                "cond: matrix is singular, condition number is infinite",
                UserWarning,
                stacklevel=2,
            )
            return float('inf')
        return float(self.sigma[0] / smallest)


def _rotate(
    x: NDArray[np.float64],
    j: int,
    k: int,
    cs: float,
    sn: float,
) -> None:
    """Apply a Givens rotation to columns j and k of x."""
    t = cs * x[:, j] + sn * x[:, k]
    x[:, k] = -sn * x[:, j] + cs * x[:, k]
    x[:, j] = t


def svd(
    a: Dense,
    epsilon: float = EPSILON,
    small: float = SMALL,
    want_u: bool = True,
    want_v: bool = True,
    max_iter: int | None = None,
) -> SVDFactors:
    """
    Singular value decomposition of a.

    Args:
        a: Matrix to decompose; overwritten. A wide matrix is replaced
           by its transpose.
        epsilon: Relative tolerance for negligible elements
        small: Absolute floor for negligible elements
        want_u: Compute the left singular vectors
        want_v: Compute the right singular vectors
        max_iter: Sweep budget, default MAX_ITER_PER_VALUE * min(m, n)

    Returns:
        SVDFactors

    Raises:
        ConvergenceError: If the sweeps exceed max_iter
    """
    m, n = a.dims()
    trans = False
    if m < n:
        a.t_copy(a)
        m, n = n, m
        want_u, want_v = want_v, want_u
        trans = True

    if max_iter is None:
        max_iter = default_max_iter(n)

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        u, sigma, v = _golub_kahan(
            a.raw_matrix(), m, n, epsilon, small, want_u, want_v, max_iter
        )

    if trans:
        u, v = v, u
    return SVDFactors(u=u, sigma=sigma, v=v, m=m, n=n)


def _golub_kahan(
    a: NDArray[np.float64],
    m: int,
    n: int,
    epsilon: float,
    small: float,
    want_u: bool,
    want_v: bool,
    max_iter: int,
) -> tuple[Dense | None, NDArray[np.float64], Dense | None]:
    sigma = np.zeros(min(m + 1, n), dtype=np.float64)
    nu = min(m, n)
    u_dense = new_dense(m, nu) if want_u else None
    v_dense = new_dense(n, n) if want_v else None
    if n == 0:
        return u_dense, sigma, v_dense
    u = u_dense.raw_matrix() if want_u else None
    v = v_dense.raw_matrix() if want_v else None

    e = np.zeros(n, dtype=np.float64)
    work = np.zeros(m, dtype=np.float64)

    # Reduce a to bidiagonal form, storing the diagonal in sigma and the
    # super-diagonal in e.
    nct = min(m - 1, n)
    nrt = max(0, min(n - 2, m))
    for k in range(max(nct, nrt)):
        if k < nct:
            sigma[k] = hypot_norm(a[k:, k].tolist())
            if sigma[k] != 0:
                if a[k, k] < 0:
                    sigma[k] = -sigma[k]
                a[k:, k] /= sigma[k]
                a[k, k] += 1
            sigma[k] = -sigma[k]

        if k + 1 < n:
            if k < nct and sigma[k] != 0:
                hk = a[k:, k]
                t = -(hk @ a[k:, k + 1:]) / a[k, k]
                a[k:, k + 1:] += np.outer(hk, t)
            e[k + 1:] = a[k, k + 1:]

        if want_u and k < nct:
            u[k:, k] = a[k:, k]

        if k < nrt:
            e[k] = hypot_norm(e[k + 1:].tolist())
            if e[k] != 0:
                if e[k + 1] < 0:
                    e[k] = -e[k]
                e[k + 1:] /= e[k]
                e[k + 1] += 1
            e[k] = -e[k]
            if k + 1 < m and e[k] != 0:
                work[k + 1:] = a[k + 1:, k + 1:] @ e[k + 1:]
                t = -e[k + 1:] / e[k + 1]
                a[k + 1:, k + 1:] += np.outer(work[k + 1:], t)
            if want_v:
                v[k + 1:, k] = e[k + 1:]

    # Set up the final bidiagonal matrix of order p.
    p = min(n, m + 1)
    if nct < n:
        sigma[nct] = a[nct, nct]
    if m < p:
        sigma[p - 1] = 0
    if nrt + 1 < p:
        e[nrt] = a[nrt, p - 1]
    e[p - 1] = 0

    if want_u:
        for j in range(nct, nu):
            u[:, j] = 0
            u[j, j] = 1
        for k in range(nct - 1, -1, -1):
            if sigma[k] != 0:
                if k + 1 < nu:
                    hk = u[k:, k]
                    t = (hk @ u[k:, k + 1:nu]) / -u[k, k]
                    u[k:, k + 1:nu] += np.outer(hk, t)
                u[k:, k] = -u[k:, k]
                u[k, k] += 1
                if k > 1:
                    u[:k - 1, k] = 0
            else:
                u[:, k] = 0
                u[k, k] = 1

    if want_v:
        for k in range(n - 1, -1, -1):
            if k < nrt and e[k] != 0:
                hk = v[k + 1:, k]
                t = (hk @ v[k + 1:, k + 1:nu]) / -v[k + 1, k]
                v[k + 1:, k + 1:nu] += np.outer(hk, t)
            v[:, k] = 0
            v[k, k] = 1

    pp = p - 1
    sweeps = 0
    while p > 0:
        sweeps += 1
        if sweeps > max_iter:
            raise ConvergenceError(
                f"svd: no convergence after {max_iter} sweeps",
                iterations=sweeps - 1,
                reason='max_iterations',
                algorithm='svd',
            )

        # Find the largest k < p-1 with a negligible e[k], or -1.
        k = p - 2
        while k >= 0:
            if abs(e[k]) <= small + epsilon * (abs(sigma[k]) + abs(sigma[k + 1])):
                e[k] = 0
                break
            k -= 1

        if k == p - 2:
            kase = 4
        else:
            ks = p - 1
            while ks > k:
                t = abs(e[ks]) if ks != p else 0.0
                if ks != k + 1:
                    t += abs(e[ks - 1])
                if abs(sigma[ks]) <= small + epsilon * t:
                    sigma[ks] = 0
                    break
                ks -= 1
            if ks == k:
                kase = 3
            elif ks == p - 1:
                kase = 1
            else:
                kase = 2
                k = ks
        k += 1

        if kase == 1:
            f = e[p - 2]
            e[p - 2] = 0
            for j in range(p - 2, k - 1, -1):
                t = np.hypot(sigma[j], f)
                cs = sigma[j] / t
                sn = f / t
                sigma[j] = t
                if j != k:
                    f = -sn * e[j - 1]
                    e[j - 1] *= cs
                if want_v:
                    _rotate(v, j, p - 1, cs, sn)

        elif kase == 2:
            f = e[k - 1]
            e[k - 1] = 0
            for j in range(k, p):
                t = np.hypot(sigma[j], f)
                cs = sigma[j] / t
                sn = f / t
                sigma[j] = t
                f = -sn * e[j]
                e[j] *= cs
                if want_u:
                    _rotate(u, j, k - 1, cs, sn)

        elif kase == 3:
            scale = max(
                abs(sigma[p - 1]), abs(sigma[p - 2]), abs(e[p - 2]),
                abs(sigma[k]), abs(e[k]),
            )
            sp = sigma[p - 1] / scale
            spm1 = sigma[p - 2] / scale
            epm1 = e[p - 2] / scale
            sk = sigma[k] / scale
            ek = e[k] / scale
            b = ((spm1 + sp) * (spm1 - sp) + epm1 * epm1) / 2
            c = (sp * epm1) * (sp * epm1)
            shift = 0.0
            if b != 0 or c != 0:
                shift = np.sqrt(b * b + c)
                if b < 0:
                    shift = -shift
                shift = c / (b + shift)
            f = (sk + sp) * (sk - sp) + shift
            g = sk * ek

            for j in range(k, p - 1):
                t = np.hypot(f, g)
                cs = f / t
                sn = g / t
                if j != k:
                    e[j - 1] = t
                f = cs * sigma[j] + sn * e[j]
                e[j] = cs * e[j] - sn * sigma[j]
                g = sn * sigma[j + 1]
                sigma[j + 1] *= cs
                if want_v:
                    _rotate(v, j, j + 1, cs, sn)
                t = np.hypot(f, g)
                cs = f / t
                sn = g / t
                sigma[j] = t
                f = cs * e[j] + sn * sigma[j + 1]
                sigma[j + 1] = -sn * e[j] + cs * sigma[j + 1]
                g = sn * e[j + 1]
                e[j + 1] *= cs
                if want_u and j < m - 1:
                    _rotate(u, j, j + 1, cs, sn)
            e[p - 2] = f

        else:
            if sigma[k] <= 0:
                sigma[k] = -sigma[k] if sigma[k] < 0 else 0.0
                if want_v:
                    v[:pp + 1, k] = -v[:pp + 1, k]

            while k < pp:
                if sigma[k] >= sigma[k + 1]:
                    break
                sigma[k], sigma[k + 1] = sigma[k + 1], sigma[k]
                if want_v and k < n - 1:
                    v[:, [k, k + 1]] = v[:, [k + 1, k]]
                if want_u and k < m - 1:
                    u[:, [k, k + 1]] = u[:, [k + 1, k]]
                k += 1
            p -= 1

    return u_dense, sigma, v_dense
