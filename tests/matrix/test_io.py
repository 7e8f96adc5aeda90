"""
Tests for the binary matrix format.
"""

import struct
import warnings

import numpy as np
import pytest

from pydense.core.exceptions import FormatError
from pydense.matrix.dense import Dense, new_dense
from pydense.matrix.io import HEADER_SIZE


class TestMarshal:

    def test_layout(self):
        m = new_dense(2, 3, [1, 2, 3, 4, 5, 6])
        data = m.marshal_binary()
        assert len(data) == HEADER_SIZE + 6 * 8
        rows, cols = struct.unpack('<qq', data[:16])
        assert (rows, cols) == (2, 3)
        assert struct.unpack('<6d', data[16:]) == (1, 2, 3, 4, 5, 6)

    def test_view_marshals_visible_window(self):
        m = new_dense(3, 3, np.arange(9.0))
        data = m.view(1, 1, 2, 2).marshal_binary()
        assert struct.unpack('<4d', data[16:]) == (4, 5, 7, 8)

    def test_bytes_protocol(self):
        m = new_dense(1, 1, [2.5])
        assert bytes(m) == m.marshal_binary()


class TestRoundTrip:

    def test_bit_exact(self, rng):
        a = rng.standard_normal((4, 5))
        a[0, 0] = np.nan
        a[1, 1] = -np.inf
        a[2, 2] = -0.0
        m = new_dense(4, 5, a.ravel().copy())
        out = Dense()
        out.unmarshal_binary(m.marshal_binary())
        assert out.dims() == (4, 5)
        assert out.to_numpy().tobytes() == a.tobytes()

    def test_from_bytes(self):
        m = new_dense(2, 2, [1, 2, 3, 4])
        assert Dense.from_bytes(bytes(m)).equals(m)

    def test_empty_matrix(self):
        m = new_dense(0, 3)
        out = Dense.from_bytes(m.marshal_binary())
        assert out.dims() == (0, 3)


class TestUnmarshalErrors:

    def test_non_zero_receiver(self):
        with pytest.raises(ValueError, match="non-zero"):
            new_dense(1, 1).unmarshal_binary(bytes(new_dense(1, 1)))

    def test_short_header(self):
        with pytest.raises(FormatError, match="shorter than the header") as info:
            Dense().unmarshal_binary(b'\x00' * 10)
        assert info.value.actual_bytes == 10

    def test_truncated_body(self):
        data = bytes(new_dense(2, 2, [1, 2, 3, 4]))[:-8]
        with pytest.raises(FormatError) as info:
            Dense().unmarshal_binary(data)
        assert info.value.expected_bytes == HEADER_SIZE + 32

    def test_negative_dimensions(self):
        with pytest.raises(FormatError, match="negative"):
            Dense().unmarshal_binary(struct.pack('<qq', -1, 2))

    def test_trailing_bytes_warn(self):
        data = bytes(new_dense(1, 1, [7.0])) + b'extra'
        out = Dense()
        with pytest.warns(UserWarning, match="trailing"):
            out.unmarshal_binary(data)
        assert out.at(0, 0) == 7.0

    def test_exact_payload_does_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            Dense.from_bytes(bytes(new_dense(1, 2, [1, 2])))
