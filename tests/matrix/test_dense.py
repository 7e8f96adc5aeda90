"""
Tests for Dense storage: construction, element access, views, growth,
copying and the receiver reuse rules.
"""

import numpy as np
import pytest

from pydense.core.exceptions import (
    ColAccessError,
    DimensionError,
    IndexOutOfRangeError,
    RowAccessError,
    SquareError,
    StrideError,
)
from pydense.matrix.dense import Dense, dense_copy_of, new_dense
from pydense.matrix.symmetric import new_sym_dense
from pydense.matrix.triangular import new_tri_dense
from pydense.matrix.vector import new_vector


class ElementOnly:
    """Matrix exposing nothing but dims() and at()."""

    def __init__(self, a):
        self._a = np.asarray(a, dtype=np.float64)

    def dims(self):
        return self._a.shape

    def at(self, r, c):
        return float(self._a[r, c])


# ═══════════════════════════════════════════════════════════════════════
# Construction and element access
# ═══════════════════════════════════════════════════════════════════════


class TestConstruction:

    def test_new_dense_zero_filled(self):
        m = new_dense(2, 3)
        assert m.dims() == (2, 3)
        np.testing.assert_array_equal(m.to_numpy(), np.zeros((2, 3)))

    def test_new_dense_row_major(self):
        m = new_dense(2, 3, [1, 2, 3, 4, 5, 6])
        assert m.at(0, 2) == 3.0
        assert m.at(1, 0) == 4.0

    def test_float64_data_not_copied(self):
        data = np.arange(4.0)
        m = new_dense(2, 2, data)
        m.set(1, 1, 10.0)
        assert data[3] == 10.0

    def test_wrong_data_length(self):
        with pytest.raises(DimensionError, match="data length"):
            new_dense(2, 2, [1, 2, 3])

    def test_negative_dimension(self):
        with pytest.raises(ValueError, match="negative"):
            new_dense(-1, 2)

    def test_zero_state(self):
        m = Dense()
        assert m.is_zero()
        assert m.dims() == (0, 0)
        assert not new_dense(1, 1).is_zero()

    def test_caps_match_dims(self):
        assert new_dense(3, 4).caps() == (3, 4)


class TestElementAccess:

    def test_set_and_at(self):
        m = new_dense(2, 2)
        m.set(0, 1, 7.5)
        assert m.at(0, 1) == 7.5

    @pytest.mark.parametrize("r", [-1, 2])
    def test_row_out_of_range(self, r):
        with pytest.raises(RowAccessError):
            new_dense(2, 2).at(r, 0)

    @pytest.mark.parametrize("c", [-1, 3])
    def test_col_out_of_range(self, c):
        with pytest.raises(ColAccessError):
            new_dense(2, 3).set(0, c, 1.0)

    def test_raw_matrix_aliases_storage(self):
        m = new_dense(2, 2)
        m.raw_matrix()[1, 0] = 3.0
        assert m.at(1, 0) == 3.0

    def test_set_raw_matrix_shares_array(self):
        a = np.zeros((3, 5))
        m = Dense()
        m.set_raw_matrix(a[:, 1:4])
        assert m.dims() == (3, 3)
        m.set(2, 0, 9.0)
        assert a[2, 1] == 9.0

    def test_set_raw_matrix_rejects_non_contiguous_columns(self):
        a = np.zeros((4, 4))
        with pytest.raises(StrideError):
            Dense().set_raw_matrix(a[:, ::2])

    def test_set_raw_matrix_rejects_wrong_dtype(self):
        with pytest.raises(StrideError):
            Dense().set_raw_matrix(np.zeros((2, 2), dtype=np.float32))


# ═══════════════════════════════════════════════════════════════════════
# Rows, columns and views
# ═══════════════════════════════════════════════════════════════════════


class TestRowsAndColumns:

    def test_row_and_col_copies(self):
        m = new_dense(2, 3, [1, 2, 3, 4, 5, 6])
        row = m.row(1)
        row[0] = 100.0
        np.testing.assert_array_equal(m.row(1), [4, 5, 6])
        np.testing.assert_array_equal(m.col(2), [3, 6])

    def test_row_into_short_destination(self):
        m = new_dense(2, 3, [1, 2, 3, 4, 5, 6])
        dst = np.zeros(2)
        out = m.row(0, dst)
        np.testing.assert_array_equal(out, [1, 2])
        np.testing.assert_array_equal(dst, [1, 2])

    def test_set_row_and_col_return_count(self):
        m = new_dense(2, 3)
        assert m.set_row(0, [1, 2, 3, 4]) == 3
        assert m.set_col(1, [9]) == 1
        np.testing.assert_array_equal(m.to_numpy(), [[1, 9, 3], [0, 0, 0]])

    def test_row_view_writes_through(self):
        m = new_dense(2, 3)
        v = m.row_view(1)
        v.set_vec(2, 5.0)
        assert m.at(1, 2) == 5.0
        assert v.len() == 3

    def test_col_view_writes_through(self):
        m = new_dense(3, 2)
        v = m.col_view(1)
        v.set_vec(2, 4.0)
        assert m.at(2, 1) == 4.0
        np.testing.assert_array_equal(v.to_numpy(), [0, 0, 4])

    def test_raw_row_view(self):
        m = new_dense(2, 2, [1, 2, 3, 4])
        m.raw_row_view(0)[:] = 0
        np.testing.assert_array_equal(m.to_numpy(), [[0, 0], [3, 4]])


class TestView:

    def test_view_shares_storage(self):
        m = new_dense(4, 4, np.arange(16.0))
        v = m.view(1, 1, 2, 2)
        np.testing.assert_array_equal(v.to_numpy(), [[5, 6], [9, 10]])
        v.set(0, 0, -1.0)
        assert m.at(1, 1) == -1.0

    def test_view_capacity(self):
        m = new_dense(4, 5)
        assert m.view(1, 2, 1, 1).caps() == (3, 3)

    @pytest.mark.parametrize("args", [
        (4, 0, 1, 1),
        (0, -1, 1, 1),
        (0, 0, 0, 1),
        (2, 2, 3, 1),
        (0, 3, 1, 2),
    ])
    def test_bad_view(self, args):
        with pytest.raises(IndexOutOfRangeError):
            new_dense(4, 4).view(*args)


class TestGrow:

    def test_grow_zero_is_identity(self):
        m = new_dense(2, 2, [1, 2, 3, 4])
        g = m.grow(0, 0)
        assert g is m
        np.testing.assert_array_equal(g.to_numpy(), [[1, 2], [3, 4]])

    def test_grow_beyond_capacity_copies(self):
        m = new_dense(2, 2, [1, 2, 3, 4])
        g = m.grow(1, 1)
        assert g.dims() == (3, 3)
        np.testing.assert_array_equal(g.to_numpy(), [[1, 2, 0], [3, 4, 0], [0, 0, 0]])
        g.set(0, 0, 10.0)
        assert m.at(0, 0) == 1.0

    def test_grow_within_capacity_shares(self):
        m = new_dense(4, 4, np.arange(16.0))
        v = m.view(0, 0, 2, 2)
        g = v.grow(1, 1)
        assert g.dims() == (3, 3)
        assert g.at(2, 2) == 10.0
        g.set(2, 2, -5.0)
        assert m.at(2, 2) == -5.0

    def test_grow_zero_state(self):
        g = Dense().grow(2, 3)
        assert g.dims() == (2, 3)
        assert not g.is_zero()

    def test_grow_negative(self):
        with pytest.raises(IndexOutOfRangeError):
            new_dense(2, 2).grow(-1, 0)


# ═══════════════════════════════════════════════════════════════════════
# Copying
# ═══════════════════════════════════════════════════════════════════════


class TestCopying:

    def test_clone_is_independent(self):
        a = new_dense(2, 2, [1, 2, 3, 4])
        c = Dense()
        c.clone(a)
        c.set(0, 0, 99.0)
        assert a.at(0, 0) == 1.0
        assert c.dims() == (2, 2)

    def test_clone_replaces_existing_shape(self):
        c = new_dense(5, 5)
        c.clone(new_dense(1, 2, [1, 2]))
        assert c.dims() == (1, 2)

    def test_clone_from_element_only_matrix(self):
        c = Dense()
        c.clone(ElementOnly([[1, 2], [3, 4]]))
        np.testing.assert_array_equal(c.to_numpy(), [[1, 2], [3, 4]])

    def test_clone_from_vector(self):
        c = dense_copy_of(new_vector(3, [1, 2, 3]))
        assert c.dims() == (3, 1)
        np.testing.assert_array_equal(c.to_numpy().ravel(), [1, 2, 3])

    def test_copy_overlapping_region(self):
        m = new_dense(3, 3)
        m.copy(new_dense(2, 4, np.arange(8.0)))
        np.testing.assert_array_equal(m.to_numpy(), [[0, 1, 2], [4, 5, 6], [0, 0, 0]])

    def test_copy_returns_copied_shape(self):
        assert new_dense(3, 3).copy(new_dense(2, 4)) == (2, 3)

    def test_copy_between_overlapping_views(self):
        m = new_dense(1, 5, [1, 2, 3, 4, 5])
        m.view(0, 1, 1, 4).copy(m.view(0, 0, 1, 4))
        np.testing.assert_array_equal(m.to_numpy(), [[1, 1, 2, 3, 4]])

    def test_t_copy(self):
        t = Dense()
        t.t_copy(new_dense(2, 3, [1, 2, 3, 4, 5, 6]))
        np.testing.assert_array_equal(t.to_numpy(), [[1, 4], [2, 5], [3, 6]])

    def test_t_copy_of_self(self):
        m = new_dense(2, 3, [1, 2, 3, 4, 5, 6])
        m.t_copy(m)
        assert m.dims() == (3, 2)
        np.testing.assert_array_equal(m.to_numpy(), [[1, 4], [2, 5], [3, 6]])

    def test_t_copy_wrong_receiver_shape(self):
        with pytest.raises(DimensionError):
            new_dense(2, 3).t_copy(new_dense(2, 3))

    def test_u_and_l(self):
        a = new_dense(3, 3, np.arange(1.0, 10.0))
        up, lo = Dense(), Dense()
        up.u(a)
        lo.l(a)
        np.testing.assert_array_equal(up.to_numpy(), np.triu(a.to_numpy()))
        np.testing.assert_array_equal(lo.to_numpy(), np.tril(a.to_numpy()))

    def test_u_in_place(self):
        a = new_dense(2, 2, [1, 2, 3, 4])
        a.u(a)
        np.testing.assert_array_equal(a.to_numpy(), [[1, 2], [0, 4]])

    def test_u_requires_square(self):
        with pytest.raises(SquareError):
            Dense().u(new_dense(2, 3))

    def test_l_from_symmetric(self):
        s = new_sym_dense(2, [1, 2, 0, 3])
        lo = Dense()
        lo.l(s)
        np.testing.assert_array_equal(lo.to_numpy(), [[1, 0], [2, 3]])

    def test_stack(self):
        s = Dense()
        s.stack(new_dense(1, 2, [1, 2]), new_dense(2, 2, [3, 4, 5, 6]))
        np.testing.assert_array_equal(s.to_numpy(), [[1, 2], [3, 4], [5, 6]])

    def test_stack_column_mismatch(self):
        with pytest.raises(DimensionError):
            Dense().stack(new_dense(1, 2), new_dense(1, 3))

    def test_augment(self):
        s = Dense()
        s.augment(new_dense(2, 1, [1, 2]), new_dense(2, 2, [3, 4, 5, 6]))
        np.testing.assert_array_equal(s.to_numpy(), [[1, 3, 4], [2, 5, 6]])

    def test_augment_self_rejected(self):
        m = new_dense(2, 2)
        with pytest.raises(DimensionError):
            m.augment(m, new_dense(2, 1))


class TestReceiverReuse:

    def test_reset_returns_to_zero_state(self):
        m = new_dense(2, 2, [1, 2, 3, 4])
        m.reset()
        assert m.is_zero()
        m.add(new_dense(1, 3, [1, 1, 1]), new_dense(1, 3, [1, 2, 3]))
        np.testing.assert_array_equal(m.to_numpy(), [[2, 3, 4]])

    def test_shaped_receiver_must_match(self):
        m = new_dense(2, 2)
        with pytest.raises(DimensionError, match="receiver"):
            m.add(new_dense(3, 3), new_dense(3, 3))

    def test_triangular_operand(self):
        t = new_tri_dense(2, True, [1, 2, 99, 3])
        c = dense_copy_of(t)
        np.testing.assert_array_equal(c.to_numpy(), [[1, 2], [0, 3]])

    def test_repr(self):
        assert repr(new_dense(2, 3)) == "Dense(dims=(2, 3), stride=3)"
