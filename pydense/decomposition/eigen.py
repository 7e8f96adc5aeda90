"""
Eigenvalue decomposition of a square matrix.

Symmetric input is reduced to tridiagonal form by Householder
transformations (tred2) and diagonalised by the implicit QL method
(tql2); the eigenvalues come out real and ascending and V is orthogonal.

Any other input is reduced to upper Hessenberg form by orthogonal
similarity transformations (orthes) and then to real Schur form by the
shifted QR method (hqr2), after which the eigenvectors are found by back
substitution. Complex eigenvalues appear in conjugate pairs and V holds
the real and imaginary parts of their vectors in adjacent columns, so
that A V = V D with D block diagonal.

The algorithms follow the EISPACK routines as adapted by Jama.

Design principles:
    - The input is overwritten (it becomes V for symmetric input and
      the Schur form otherwise)
    - Division by zero produces inf/NaN as in IEEE arithmetic rather
      than raising
    - The QL/QR iterations are bounded by max_iter
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pydense.core.exceptions import ConvergenceError
from pydense.core.precision import EPSILON, default_max_iter
from pydense.core.validation import check_square
from pydense.matrix.dense import Dense, new_dense


@dataclass(frozen=True)
class EigenFactors:
    """
    Result of eigen().

    Attributes:
        v: Eigenvector matrix, A V = V D
        real: Real parts of the eigenvalues
        imag: Imaginary parts of the eigenvalues
    """
    v: Dense
    real: NDArray[np.float64]
    imag: NDArray[np.float64]

    def d(self) -> Dense:
        """
        Block diagonal eigenvalue matrix.

        Real eigenvalues sit on the diagonal. A complex pair
        a + ib, a - ib occupies the 2x2 block [[a, b], [-b, a]].
        """
        n = len(self.real)
        out = new_dense(n, n)
        raw = out.raw_matrix()
        for i in range(n):
            raw[i, i] = self.real[i]
            if self.imag[i] > 0:
                raw[i, i + 1] = self.imag[i]
            elif self.imag[i] < 0:
                raw[i, i - 1] = self.imag[i]
        return out

    def values(self) -> NDArray[np.complex128]:
        """Eigenvalues as complex numbers."""
        return self.real + 1j * self.imag


def is_symmetric(a: NDArray[np.float64]) -> bool:
    """Exact symmetry test."""
    return bool(np.array_equal(a, a.T))


def eigen(
    a: Dense,
    epsilon: float = EPSILON,
    max_iter: int | None = None,
) -> EigenFactors:
    """
    Eigen decomposition of the square matrix a.

    Args:
        a: Matrix to decompose; overwritten
        epsilon: Relative tolerance for negligible sub-diagonal elements
        max_iter: Iteration budget for tql2/hqr2, default
                  MAX_ITER_PER_VALUE * n

    Returns:
        EigenFactors

    Raises:
        SquareError: If a is not square
        ConvergenceError: If the iteration budget is exhausted
    """
    check_square(a.dims(), 'eigen')
    n = a.dims()[0]
    if max_iter is None:
        max_iter = default_max_iter(n)

    d = np.zeros(n, dtype=np.float64)
    e = np.zeros(n, dtype=np.float64)
    if n == 0:
        return EigenFactors(v=a, real=d, imag=e)

    raw = a.raw_matrix()
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        if is_symmetric(raw):
            _tred2(raw, d, e)
            _tql2(d, e, raw, epsilon, max_iter)
            v = a
        else:
            v = new_dense(n, n)
            _orthes(raw, v.raw_matrix())
            _hqr2(d, e, raw, v.raw_matrix(), epsilon, max_iter)
    return EigenFactors(v=v, real=d, imag=e)


def _tred2(v: NDArray[np.float64], d: NDArray[np.float64], e: NDArray[np.float64]) -> None:
    """Symmetric Householder reduction to tridiagonal form, in place."""
    n = len(d)
    d[:] = v[n - 1, :]

    for i in range(n - 1, 0, -1):
        scale = np.sum(np.abs(d[:i]))
        h = np.float64(0)
        if scale == 0:
            e[i] = d[i - 1]
            d[:i] = v[i - 1, :i]
            v[i, :i] = 0
            v[:i, i] = 0
        else:
            d[:i] /= scale
            h = d[:i] @ d[:i]
            f = d[i - 1]
            g = np.sqrt(h)
            if f > 0:
                g = -g
            e[i] = scale * g
            h -= f * g
            d[i - 1] = f - g
            e[:i] = 0

            for j in range(i):
                f = d[j]
                v[j, i] = f
                g = e[j] + v[j, j] * f
                if j + 1 < i:
                    g += v[j + 1:i, j] @ d[j + 1:i]
                    e[j + 1:i] += v[j + 1:i, j] * f
                e[j] = g

            e[:i] /= h
            f = e[:i] @ d[:i]
            hh = f / (h + h)
            e[:i] -= hh * d[:i]

            for j in range(i):
                f = d[j]
                g = e[j]
                v[j:i, j] -= f * e[j:i] + g * d[j:i]
                d[j] = v[i - 1, j]
                v[i, j] = 0
        d[i] = h

    # Accumulate transformations.
    for i in range(n - 1):
        v[n - 1, i] = v[i, i]
        v[i, i] = 1
        h = d[i + 1]
        if h != 0:
            d[:i + 1] = v[:i + 1, i + 1] / h
            g = v[:i + 1, i + 1] @ v[:i + 1, :i + 1]
            v[:i + 1, :i + 1] -= np.outer(d[:i + 1], g)
        v[:i + 1, i + 1] = 0

    d[:] = v[n - 1, :]
    v[n - 1, :] = 0
    v[n - 1, n - 1] = 1
    e[0] = 0


def _tql2(
    d: NDArray[np.float64],
    e: NDArray[np.float64],
    v: NDArray[np.float64],
    epsilon: float,
    max_iter: int,
) -> None:
    """Symmetric tridiagonal QL algorithm; eigenvalues sorted ascending."""
    n = len(d)
    e[:n - 1] = e[1:]
    e[n - 1] = 0

    f = np.float64(0)
    tst1 = np.float64(0)
    iterations = 0
    for l in range(n):
        # Find a small sub-diagonal element.
        tst1 = max(tst1, abs(d[l]) + abs(e[l]))
        m = l
        while m < n - 1:
            if abs(e[m]) <= epsilon * tst1:
                break
            m += 1

        # If m == l, d[l] is already an eigenvalue; otherwise iterate.
        if m > l:
            while True:
                iterations += 1
                if iterations > max_iter:
                    raise ConvergenceError(
                        f"eigen: tql2 did not converge in {max_iter} iterations",
                        iterations=iterations - 1,
                        reason='max_iterations',
                        algorithm='tql2',
                    )

                # Compute the implicit shift.
                g = d[l]
                p = (d[l + 1] - g) / (2 * e[l])
                r = np.hypot(p, 1.0)
                if p < 0:
                    r = -r
                d[l] = e[l] / (p + r)
                d[l + 1] = e[l] * (p + r)
                dl1 = d[l + 1]
                h = g - d[l]
                d[l + 2:] -= h
                f += h

                # Implicit QL transformation.
                p = d[m]
                c = c2 = c3 = np.float64(1)
                el1 = e[l + 1]
                s = s2 = np.float64(0)
                for i in range(m - 1, l - 1, -1):
                    c3 = c2
                    c2 = c
                    s2 = s
                    g = c * e[i]
                    h = c * p
                    r = np.hypot(p, e[i])
                    e[i + 1] = s * r
                    s = e[i] / r
                    c = p / r
                    p = c * d[i] - s * g
                    d[i + 1] = h + s * (c * g + s * d[i])

                    col = v[:, i + 1].copy()
                    v[:, i + 1] = s * v[:, i] + c * col
                    v[:, i] = c * v[:, i] - s * col

                p = -s * s2 * c3 * el1 * e[l] / dl1
                e[l] = s * p
                d[l] = c * p

                if not abs(e[l]) > epsilon * tst1:
                    break
        d[l] += f
        e[l] = 0

    # Sort eigenvalues and corresponding vectors.
    for i in range(n - 1):
        k = i
        p = d[i]
        for j in range(i + 1, n):
            if d[j] < p:
                k = j
                p = d[j]
        if k != i:
            d[k] = d[i]
            d[i] = p
            v[:, [i, k]] = v[:, [k, i]]


def _orthes(hess: NDArray[np.float64], v: NDArray[np.float64]) -> None:
    """
    Nonsymmetric reduction to Hessenberg form, in place.

    v receives the accumulated orthogonal transformations.
    """
    n = hess.shape[0]
    ort = np.zeros(n, dtype=np.float64)
    low = 0
    high = n - 1

    for m in range(low + 1, high):
        scale = np.sum(np.abs(hess[m:high + 1, m - 1]))
        if scale == 0:
            continue

        # Householder transformation.
        ort[m:high + 1] = hess[m:high + 1, m - 1] / scale
        h = ort[m:high + 1] @ ort[m:high + 1]
        g = np.sqrt(h)
        if ort[m] > 0:
            g = -g
        h -= ort[m] * g
        ort[m] -= g

        # H = (I - u u^T / h) H (I - u u^T / h)
        u = ort[m:high + 1]
        f = (u @ hess[m:high + 1, m:]) / h
        hess[m:high + 1, m:] -= np.outer(u, f)
        f = (hess[:high + 1, m:high + 1] @ u) / h
        hess[:high + 1, m:high + 1] -= np.outer(f, u)

        ort[m] *= scale
        hess[m, m - 1] = scale * g

    v[:] = np.eye(n)
    for m in range(high - 1, low, -1):
        if hess[m, m - 1] == 0:
            continue
        ort[m + 1:high + 1] = hess[m + 1:high + 1, m - 1]
        u = ort[m:high + 1]
        g = u @ v[m:high + 1, m:high + 1]
        # double division avoids possible underflow
        g = (g / ort[m]) / hess[m, m - 1]
        v[m:high + 1, m:high + 1] += np.outer(u, g)


def _cdiv(xr: float, xi: float, yr: float, yi: float) -> tuple[float, float]:
    """Complex division (xr + i xi) / (yr + i yi)."""
    c = np.complex128(complex(xr, xi)) / np.complex128(complex(yr, yi))
    return c.real, c.imag


def _hqr2(
    d: NDArray[np.float64],
    e: NDArray[np.float64],
    hess: NDArray[np.float64],
    v: NDArray[np.float64],
    epsilon: float,
    max_iter: int,
) -> None:
    """Nonsymmetric reduction from Hessenberg to real Schur form."""
    nn = len(d)
    n = nn - 1
    low = 0
    high = n

    exshift = np.float64(0)
    p = q = r = s = z = t = w = x = y = np.float64(0)

    # Store roots isolated by balancing and compute the matrix norm.
    norm = np.sum(np.abs(np.triu(hess, -1)))

    # Outer loop over eigenvalue index.
    it = 0
    iterations = 0
    while n >= low:
        # Look for a single small sub-diagonal element.
        l = n
        while l > low:
            s = abs(hess[l - 1, l - 1]) + abs(hess[l, l])
            if s == 0:
                s = norm
            if abs(hess[l, l - 1]) < epsilon * s:
                break
            l -= 1

        if l == n:
            # One root found.
            hess[n, n] += exshift
            d[n] = hess[n, n]
            e[n] = 0
            n -= 1
            it = 0
        elif l == n - 1:
            # Two roots found.
            w = hess[n, n - 1] * hess[n - 1, n]
            p = (hess[n - 1, n - 1] - hess[n, n]) / 2.0
            q = p * p + w
            z = np.sqrt(abs(q))
            hess[n, n] += exshift
            hess[n - 1, n - 1] += exshift
            x = hess[n, n]

            if q >= 0:
                # Real pair.
                z = p + z if p >= 0 else p - z
                d[n - 1] = x + z
                d[n] = d[n - 1]
                if z != 0:
                    d[n] = x - w / z
                e[n - 1] = 0
                e[n] = 0
                x = hess[n, n - 1]
                s = abs(x) + abs(z)
                p = x / s
                q = z / s
                r = np.hypot(p, q)
                p /= r
                q /= r

                # Row modification.
                row = hess[n - 1, n - 1:].copy()
                hess[n - 1, n - 1:] = q * row + p * hess[n, n - 1:]
                hess[n, n - 1:] = q * hess[n, n - 1:] - p * row

                # Column modification.
                col = hess[:n + 1, n - 1].copy()
                hess[:n + 1, n - 1] = q * col + p * hess[:n + 1, n]
                hess[:n + 1, n] = q * hess[:n + 1, n] - p * col

                # Accumulate transformations.
                col = v[low:high + 1, n - 1].copy()
                v[low:high + 1, n - 1] = q * col + p * v[low:high + 1, n]
                v[low:high + 1, n] = q * v[low:high + 1, n] - p * col
            else:
                # Complex pair.
                d[n - 1] = x + p
                d[n] = x + p
                e[n - 1] = z
                e[n] = -z
            n -= 2
            it = 0
        else:
            # No convergence yet.
            iterations += 1
            if iterations > max_iter:
                raise ConvergenceError(
                    f"eigen: hqr2 did not converge in {max_iter} iterations",
                    iterations=iterations - 1,
                    reason='max_iterations',
                    algorithm='hqr2',
                )

            # Form shift.
            x = hess[n, n]
            y = np.float64(0)
            w = np.float64(0)
            if l < n:
                y = hess[n - 1, n - 1]
                w = hess[n, n - 1] * hess[n - 1, n]

            # Wilkinson's original ad hoc shift.
            if it == 10:
                exshift += x
                idx = np.arange(low, n + 1)
                hess[idx, idx] -= x
                s = abs(hess[n, n - 1]) + abs(hess[n - 1, n - 2])
                x = 0.75 * s
                y = x
                w = -0.4375 * s * s

            # MATLAB's new ad hoc shift.
            if it == 30:
                s = (y - x) / 2
                s = s * s + w
                if s > 0:
                    s = np.sqrt(s)
                    if y < x:
                        s = -s
                    s = x - w / ((y - x) / 2 + s)
                    idx = np.arange(low, n + 1)
                    hess[idx, idx] -= s
                    exshift += s
                    x = y = w = np.float64(0.964)

            it += 1

            # Look for two consecutive small sub-diagonal elements.
            m = n - 2
            while m >= l:
                z = hess[m, m]
                r = x - z
                s = y - z
                p = (r * s - w) / hess[m + 1, m] + hess[m, m + 1]
                q = hess[m + 1, m + 1] - z - r - s
                r = hess[m + 2, m + 1]
                s = abs(p) + abs(q) + abs(r)
                p /= s
                q /= s
                r /= s
                if m == l:
                    break
                lhs = abs(hess[m, m - 1]) * (abs(q) + abs(r))
                rhs = epsilon * (abs(p) * (
                    abs(hess[m - 1, m - 1]) + abs(z) + abs(hess[m + 1, m + 1])
                ))
                if lhs < rhs:
                    break
                m -= 1

            for i in range(m + 2, n + 1):
                hess[i, i - 2] = 0
                if i > m + 2:
                    hess[i, i - 3] = 0

            # Double QR step involving rows l:n and columns m:n.
            for k in range(m, n):
                last = k == n - 1
                if k != m:
                    p = hess[k, k - 1]
                    q = hess[k + 1, k - 1]
                    r = hess[k + 2, k - 1] if not last else np.float64(0)
                    x = abs(p) + abs(q) + abs(r)
                    if x == 0:
                        continue
                    p /= x
                    q /= x
                    r /= x

                s = np.sqrt(p * p + q * q + r * r)
                if p < 0:
                    s = -s
                if s == 0:
                    continue

                if k != m:
                    hess[k, k - 1] = -s * x
                elif l != m:
                    hess[k, k - 1] = -hess[k, k - 1]
                p += s
                x = p / s
                y = q / s
                z = r / s
                q /= p
                r /= p

                # Row modification.
                pj = hess[k, k:] + q * hess[k + 1, k:]
                if not last:
                    pj += r * hess[k + 2, k:]
                    hess[k + 2, k:] -= pj * z
                hess[k, k:] -= pj * x
                hess[k + 1, k:] -= pj * y

                # Column modification.
                top = min(n, k + 3) + 1
                pi = x * hess[:top, k] + y * hess[:top, k + 1]
                if not last:
                    pi += z * hess[:top, k + 2]
                    hess[:top, k + 2] -= pi * r
                hess[:top, k] -= pi
                hess[:top, k + 1] -= pi * q

                # Accumulate transformations.
                pv = x * v[low:high + 1, k] + y * v[low:high + 1, k + 1]
                if not last:
                    pv += z * v[low:high + 1, k + 2]
                    v[low:high + 1, k + 2] -= pv * r
                v[low:high + 1, k] -= pv
                v[low:high + 1, k + 1] -= pv * q

    # Backsubstitute to find vectors of upper triangular form.
    if norm == 0:
        return

    for n in range(nn - 1, -1, -1):
        p = d[n]
        q = e[n]

        if q == 0:
            # Real vector.
            l = n
            hess[n, n] = 1
            for i in range(n - 1, -1, -1):
                w = hess[i, i] - p
                r = hess[i, l:n + 1] @ hess[l:n + 1, n]
                if e[i] < 0:
                    z = w
                    s = r
                    continue
                l = i
                if e[i] == 0:
                    if w != 0:
                        hess[i, n] = -r / w
                    else:
                        hess[i, n] = -r / (epsilon * norm)
                else:
                    # Solve real equations.
                    x = hess[i, i + 1]
                    y = hess[i + 1, i]
                    q = (d[i] - p) * (d[i] - p) + e[i] * e[i]
                    t = (x * s - z * r) / q
                    hess[i, n] = t
                    if abs(x) > abs(z):
                        hess[i + 1, n] = (-r - w * t) / x
                    else:
                        hess[i + 1, n] = (-s - y * t) / z

                # Overflow control.
                t = abs(hess[i, n])
                if epsilon * t * t > 1:
                    hess[i:n + 1, n] /= t

        elif q < 0:
            # Complex vector; last vector component imaginary so the
            # matrix is triangular.
            l = n - 1
            if abs(hess[n, n - 1]) > abs(hess[n - 1, n]):
                hess[n - 1, n - 1] = q / hess[n, n - 1]
                hess[n - 1, n] = -(hess[n, n] - p) / hess[n, n - 1]
            else:
                hess[n - 1, n - 1], hess[n - 1, n] = _cdiv(
                    0.0, -hess[n - 1, n], hess[n - 1, n - 1] - p, q
                )
            hess[n, n - 1] = 0
            hess[n, n] = 1

            for i in range(n - 2, -1, -1):
                ra = hess[i, l:n + 1] @ hess[l:n + 1, n - 1]
                sa = hess[i, l:n + 1] @ hess[l:n + 1, n]
                w = hess[i, i] - p

                if e[i] < 0:
                    z = w
                    r = ra
                    s = sa
                    continue
                l = i
                if e[i] == 0:
                    hess[i, n - 1], hess[i, n] = _cdiv(-ra, -sa, w, q)
                else:
                    # Solve complex equations.
                    x = hess[i, i + 1]
                    y = hess[i + 1, i]
                    vr = (d[i] - p) * (d[i] - p) + e[i] * e[i] - q * q
                    vi = (d[i] - p) * 2 * q
                    if vr == 0 and vi == 0:
                        vr = epsilon * norm * (
                            abs(w) + abs(q) + abs(x) + abs(y) + abs(z)
                        )
                    hess[i, n - 1], hess[i, n] = _cdiv(
                        x * r - z * ra + q * sa, x * s - z * sa - q * ra, vr, vi
                    )
                    if abs(x) > abs(z) + abs(q):
                        hess[i + 1, n - 1] = (-ra - w * hess[i, n - 1] + q * hess[i, n]) / x
                        hess[i + 1, n] = (-sa - w * hess[i, n] - q * hess[i, n - 1]) / x
                    else:
                        hess[i + 1, n - 1], hess[i + 1, n] = _cdiv(
                            -r - y * hess[i, n - 1], -s - y * hess[i, n], z, q
                        )

                # Overflow control.
                t = max(abs(hess[i, n - 1]), abs(hess[i, n]))
                if epsilon * t * t > 1:
                    hess[i:n + 1, n - 1] /= t
                    hess[i:n + 1, n] /= t

    # Back transformation to get eigenvectors of the original matrix.
    for j in range(nn - 1, low - 1, -1):
        top = min(j, high) + 1
        v[low:high + 1, j] = v[low:high + 1, low:top] @ hess[low:top, j]
