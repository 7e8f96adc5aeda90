"""
Tests for Cholesky factorization and the triangular / Cholesky solves.
"""

import numpy as np
import pytest

from pydense.core.exceptions import (
    DimensionError,
    NotPositiveDefiniteError,
    SingularMatrixError,
    TriangleError,
)
from pydense.core.tolerances import DEFAULT
from pydense.decomposition.cholesky import cholesky
from pydense.matrix.dense import Dense, new_dense
from pydense.matrix.symmetric import new_sym_dense
from pydense.matrix.triangular import TriDense, new_tri_dense
from pydense.matrix.vector import Vector, new_vector


def sym(a):
    a = np.asarray(a, dtype=np.float64)
    return new_sym_dense(a.shape[0], a.ravel().copy())


# ═══════════════════════════════════════════════════════════════════════
# Factorization
# ═══════════════════════════════════════════════════════════════════════


class TestCholesky:

    def test_two_by_two_scenario(self):
        t = TriDense()
        assert t.cholesky(sym([[4, 2], [2, 3]]), False) is True
        np.testing.assert_allclose(
            t.to_numpy(), [[2, 0], [1, 1.41421356]], rtol=1e-8,
        )

    def test_indefinite_returns_false(self):
        t = TriDense()
        assert t.cholesky(sym([[1, 2], [2, 1]]), False) is False

    def test_lower_reconstructs(self, spd):
        t = TriDense()
        assert t.cholesky(sym(spd), False)
        lo = t.to_numpy()
        np.testing.assert_allclose(lo @ lo.T, spd, rtol=DEFAULT.rtol, atol=DEFAULT.atol)

    def test_upper_reconstructs(self, spd):
        t = TriDense()
        assert t.cholesky(sym(spd), True)
        assert t.triangle() == (6, True)
        up = t.to_numpy()
        np.testing.assert_allclose(up.T @ up, spd, rtol=DEFAULT.rtol, atol=DEFAULT.atol)

    def test_matches_numpy(self, spd):
        t = cholesky(sym(spd))
        np.testing.assert_allclose(
            t.to_numpy(), np.linalg.cholesky(spd), rtol=DEFAULT.rtol, atol=DEFAULT.atol,
        )

    def test_input_not_modified(self, spd):
        s = sym(spd)
        before = s.to_numpy()
        cholesky(s, upper=True)
        np.testing.assert_array_equal(s.to_numpy(), before)

    def test_cholesky_raises_with_pivot(self):
        with pytest.raises(NotPositiveDefiniteError) as info:
            cholesky(sym([[1, 2], [2, 1]]))
        assert info.value.pivot == 1

    def test_receiver_order_mismatch(self):
        with pytest.raises(DimensionError):
            new_tri_dense(3, False).cholesky(sym(np.eye(2)), False)

    def test_receiver_triangle_mismatch(self):
        with pytest.raises(TriangleError):
            new_tri_dense(2, True).cholesky(sym(np.eye(2)), False)

    def test_reused_receiver(self):
        t = new_tri_dense(2, False)
        assert t.cholesky(sym([[4, 2], [2, 3]]), False)
        assert t.at(1, 0) == pytest.approx(1.0)


# ═══════════════════════════════════════════════════════════════════════
# Solves
# ═══════════════════════════════════════════════════════════════════════


class TestSolves:

    def test_solve_cholesky(self, rng, spd):
        b = rng.standard_normal((6, 2))
        t = cholesky(sym(spd))
        x = Dense()
        x.solve_cholesky(t, new_dense(6, 2, b.ravel().copy()))
        np.testing.assert_allclose(spd @ x.to_numpy(), b, rtol=DEFAULT.rtol, atol=1e-10)

    def test_solve_cholesky_upper(self, rng, spd):
        b = rng.standard_normal((6, 1))
        t = cholesky(sym(spd), upper=True)
        x = Dense()
        x.solve_cholesky(t, new_dense(6, 1, b.ravel().copy()))
        np.testing.assert_allclose(spd @ x.to_numpy(), b, rtol=DEFAULT.rtol, atol=1e-10)

    def test_solve_cholesky_in_place(self, spd):
        t = cholesky(sym(spd))
        b = new_dense(6, 1, np.ones(6))
        b.solve_cholesky(t, b)
        np.testing.assert_allclose(spd @ b.to_numpy().ravel(), np.ones(6), atol=1e-10)

    def test_solve_cholesky_vec(self, rng, spd):
        b = rng.standard_normal(6)
        t = cholesky(sym(spd))
        x = Vector()
        x.solve_cholesky_vec(t, new_vector(6, b.copy()))
        np.testing.assert_allclose(spd @ x.to_numpy(), b, rtol=DEFAULT.rtol, atol=1e-10)

    def test_solve_cholesky_wrong_rows(self, spd):
        t = cholesky(sym(spd))
        with pytest.raises(DimensionError):
            Dense().solve_cholesky(t, new_dense(5, 1))

    @pytest.mark.parametrize("upper", [False, True])
    @pytest.mark.parametrize("trans", [False, True])
    def test_solve_tri(self, rng, upper, trans):
        a = rng.standard_normal((4, 4)) + 4 * np.eye(4)
        a = np.triu(a) if upper else np.tril(a)
        b = rng.standard_normal((4, 3))
        x = Dense()
        x.solve_tri(new_tri_dense(4, upper, a.ravel().copy()), trans, new_dense(4, 3, b.ravel().copy()))
        op = a.T if trans else a
        np.testing.assert_allclose(op @ x.to_numpy(), b, rtol=DEFAULT.rtol, atol=1e-10)

    def test_solve_tri_singular(self):
        t = new_tri_dense(2, True, [1, 1, 0, 0])
        with pytest.raises(SingularMatrixError):
            Dense().solve_tri(t, False, new_dense(2, 1, [1, 1]))
