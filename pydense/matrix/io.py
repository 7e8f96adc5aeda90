"""
Binary encoding of Dense matrices.

Layout (little-endian, no padding):

    offset 0   int64    rows
    offset 8   int64    cols
    offset 16  float64  rows*cols elements, row-major

The layout is fixed so payloads can be exchanged with other
implementations of the same format.
"""

import warnings
from typing import TYPE_CHECKING

import numpy as np

from pydense.core.exceptions import FormatError

if TYPE_CHECKING:
    from pydense.matrix.dense import Dense


HEADER_DTYPE = np.dtype('<i8')
ELEMENT_DTYPE = np.dtype('<f8')
HEADER_SIZE = 2 * HEADER_DTYPE.itemsize


def marshal_dense(m: 'Dense') -> bytes:
    rows, cols = m.dims()
    header = np.array([rows, cols], dtype=HEADER_DTYPE).tobytes()
    body = np.ascontiguousarray(m.raw_matrix(), dtype=ELEMENT_DTYPE).tobytes()
    return header + body


def unmarshal_dense(m: 'Dense', data: bytes) -> None:
    """
    Decode data into the zero-state matrix m.

    Raises:
        ValueError: If m is not in the zero state
        FormatError: If the header is short, holds negative dimensions,
                     or promises more elements than data holds
    """
    if not m.is_zero():
        raise ValueError("pydense: unmarshal into non-zero matrix")

    data = memoryview(data).cast('B')
    if len(data) < HEADER_SIZE:
        raise FormatError(
            f"unmarshal: payload of {len(data)} bytes is shorter than the header",
            expected_bytes=HEADER_SIZE,
            actual_bytes=len(data),
        )
    rows, cols = (int(v) for v in np.frombuffer(data, dtype=HEADER_DTYPE, count=2))
    if rows < 0 or cols < 0:
        raise FormatError(f"unmarshal: negative dimensions ({rows}, {cols})")

    n = rows * cols
    expected = HEADER_SIZE + n * ELEMENT_DTYPE.itemsize
    if len(data) < expected:
        raise FormatError(
            f"unmarshal: {rows}x{cols} payload needs {expected} bytes, got {len(data)}",
            expected_bytes=expected,
            actual_bytes=len(data),
        )
    if len(data) > expected:
        warnings.warn(
            f"unmarshal: ignoring {len(data) - expected} trailing bytes",
            UserWarning,
            stacklevel=3,
        )

    values = np.frombuffer(data, dtype=ELEMENT_DTYPE, count=n, offset=HEADER_SIZE)
    m._reuse_as(rows, cols)
    m._data[:n] = values
