"""
Low-level buffer helpers shared by the storage types.

All storage types keep a flat float64 buffer. The buffer always extends
from the first element of the matrix to the end of the allocation, so
the capacity beyond the visible window is reachable for in-place growth.
"""

import numpy as np
from numpy.lib.stride_tricks import as_strided
from numpy.typing import NDArray


ITEMSIZE: int = np.dtype(np.float64).itemsize


def empty_buffer() -> NDArray[np.float64]:
    """A zero-length buffer for zero-state receivers."""
    return np.empty(0, dtype=np.float64)


def use(data: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    """
    Return a buffer of n elements, reusing data when it is large enough.
    
    The contents of a reused buffer are left as they are.
    """
    if n <= len(data):
        return data[:n]
    return np.empty(n, dtype=np.float64)


def use_zeroed(data: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    """Like use(), but the returned elements are guaranteed to be zero."""
    if n <= len(data):
        buf = data[:n]
        buf[:] = 0
        return buf
    return np.zeros(n, dtype=np.float64)


def strided(
    data: NDArray[np.float64],
    rows: int,
    cols: int,
    stride: int,
) -> NDArray[np.float64]:
    """
    Writable 2-D view of a row-major strided buffer.
    
    Element (i, j) of the result aliases data[i*stride + j].
    """
    if rows == 0 or cols == 0:
        return np.empty((rows, cols), dtype=np.float64)
    return as_strided(
        data,
        shape=(rows, cols),
        strides=(stride * ITEMSIZE, ITEMSIZE),
    )


def flat_from_2d(a: NDArray[np.float64]) -> tuple[NDArray[np.float64], int]:
    """
    Recover the flat buffer and row stride behind a 2-D row-major view.
    
    Returns:
        (data, stride) such that strided(data, *a.shape, stride) aliases a,
        or (None, 0) if a cannot be expressed that way.
    """
    rows, cols = a.shape
    if a.dtype != np.float64:
        return None, 0
    if rows == 0 or cols == 0:
        return np.ascontiguousarray(a).reshape(-1), cols
    row_step, col_step = a.strides
    if cols > 1 and col_step != ITEMSIZE:
        return None, 0
    if rows > 1 and (row_step % ITEMSIZE != 0 or row_step < cols * ITEMSIZE):
        return None, 0
    stride = row_step // ITEMSIZE if rows > 1 else cols
    length = (rows - 1) * stride + cols
    return as_strided(a, shape=(length,), strides=(ITEMSIZE,)), stride
