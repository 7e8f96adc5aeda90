"""
Tests for Vector storage and vector arithmetic.
"""

import numpy as np
import pytest

from pydense.core.exceptions import (
    DimensionError,
    IndexOutOfRangeError,
    VectorAccessError,
)
from pydense.core.tolerances import DEFAULT
from pydense.matrix.dense import new_dense
from pydense.matrix.symmetric import new_sym_dense
from pydense.matrix.triangular import new_tri_dense
from pydense.matrix.vector import Vector, new_vector


class TestVectorStorage:

    def test_new_vector(self):
        v = new_vector(3, [1, 2, 3])
        assert v.len() == 3
        assert len(v) == 3
        assert v.dims() == (3, 1)
        assert v.at(2, 0) == 3.0

    def test_zero_state(self):
        v = Vector()
        assert v.is_zero()
        assert not new_vector(2).is_zero()

    def test_set_and_at_vec(self):
        v = new_vector(2)
        v.set_vec(1, 4.0)
        assert v.at_vec(1) == 4.0

    def test_index_out_of_range(self):
        with pytest.raises(VectorAccessError):
            new_vector(2).at_vec(2)

    def test_wrong_length(self):
        with pytest.raises(DimensionError):
            new_vector(3, [1, 2])

    def test_view_vec_shares_storage(self):
        v = new_vector(5, np.arange(5.0))
        sub = v.view_vec(1, 3)
        np.testing.assert_array_equal(sub.to_numpy(), [1, 2, 3])
        sub.set_vec(0, -1.0)
        assert v.at_vec(1) == -1.0

    @pytest.mark.parametrize("i, n", [(3, 3), (0, 0), (-1, 2)])
    def test_bad_view_vec(self, i, n):
        with pytest.raises(IndexOutOfRangeError):
            new_vector(5).view_vec(i, n)

    def test_strided_column_view(self):
        m = new_dense(3, 3, np.arange(9.0))
        col = m.col_view(1)
        np.testing.assert_array_equal(col.raw_vector(), [1, 4, 7])
        assert col.view_vec(1, 2).at_vec(1) == 7.0

    def test_copy_vec_prefix(self):
        v = new_vector(2)
        assert v.copy_vec(new_vector(3, [1, 2, 3])) == 2
        np.testing.assert_array_equal(v.to_numpy(), [1, 2])

    def test_reset(self):
        v = new_vector(2, [1, 2])
        v.reset()
        assert v.is_zero()


class TestVectorArithmetic:

    def test_add_sub(self):
        a = new_vector(3, [1, 2, 3])
        b = new_vector(3, [1, 1, 1])
        c = Vector()
        c.add_vec(a, b)
        np.testing.assert_array_equal(c.to_numpy(), [2, 3, 4])
        c.sub_vec(c, b)
        np.testing.assert_array_equal(c.to_numpy(), [1, 2, 3])

    def test_mul_and_div_elem(self):
        a = new_vector(2, [2, 6])
        b = new_vector(2, [2, 3])
        c = Vector()
        c.mul_elem_vec(a, b)
        np.testing.assert_array_equal(c.to_numpy(), [4, 18])
        c.div_elem_vec(a, b)
        np.testing.assert_array_equal(c.to_numpy(), [1, 2])

    def test_length_mismatch(self):
        with pytest.raises(DimensionError, match="add_vec"):
            Vector().add_vec(new_vector(2), new_vector(3))

    def test_receiver_length_mismatch(self):
        with pytest.raises(DimensionError):
            new_vector(4).add_vec(new_vector(2), new_vector(2))

    def test_equals(self):
        assert new_vector(2, [1, 2]).equals_vec(new_vector(2, [1, 2]))
        assert not new_vector(2, [1, 2]).equals_vec(new_vector(3))
        assert new_vector(1, [1.0]).equals_approx_vec(new_vector(1, [1.0 + 1e-12]), 1e-10)


class TestMulVec:

    def test_dense(self, rng):
        a = rng.standard_normal((3, 4))
        x = rng.standard_normal(4)
        y = Vector()
        y.mul_vec(new_dense(3, 4, a.ravel().copy()), False, new_vector(4, x.copy()))
        np.testing.assert_allclose(y.to_numpy(), a @ x, rtol=DEFAULT.rtol)

    def test_dense_transposed(self, rng):
        a = rng.standard_normal((3, 4))
        x = rng.standard_normal(3)
        y = Vector()
        y.mul_vec(new_dense(3, 4, a.ravel().copy()), True, new_vector(3, x.copy()))
        np.testing.assert_allclose(y.to_numpy(), a.T @ x, rtol=DEFAULT.rtol)

    def test_symmetric_reads_upper_triangle(self):
        s = new_sym_dense(2, [1, 2, 100, 3])
        y = Vector()
        y.mul_vec(s, False, new_vector(2, [1, 1]))
        np.testing.assert_array_equal(y.to_numpy(), [3, 5])

    @pytest.mark.parametrize("trans", [False, True])
    def test_triangular(self, trans):
        t = new_tri_dense(2, False, [1, 100, 2, 3])
        full = np.array([[1.0, 0.0], [2.0, 3.0]])
        y = Vector()
        y.mul_vec(t, trans, new_vector(2, [1, 1]))
        expected = (full.T if trans else full) @ [1, 1]
        np.testing.assert_array_equal(y.to_numpy(), expected)

    def test_receiver_is_operand(self):
        x = new_vector(2, [1, 2])
        x.mul_vec(new_dense(2, 2, [0, 1, 1, 0]), False, x)
        np.testing.assert_array_equal(x.to_numpy(), [2, 1])

    def test_inner_mismatch(self):
        with pytest.raises(DimensionError, match="mul_vec"):
            Vector().mul_vec(new_dense(2, 3), False, new_vector(2))
