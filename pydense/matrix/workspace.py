"""
Scratch-buffer pool for operations that must not write into an operand.

Products, powers and the matrix exponential need temporary matrices
when the receiver aliases one of the inputs. Rather than allocate a new
buffer each time, buffers are recycled from size-bucketed free lists.

Usage:
    with workspace(r, c) as w:
        w.mul(a, b)
        m.copy(w)

The context manager releases the buffer on every exit path, including
exceptions. get_workspace()/put_workspace() are the underlying
acquire/release pair for code that manages several workspaces at once
(see contextlib.ExitStack).
"""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from pydense.matrix.dense import Dense


# Free lists keyed by log2 of the buffer length.
_pool: dict[int, list[NDArray[np.float64]]] = {}


def _bucket(n: int) -> int:
    """Smallest b with 1 << b >= n."""
    return max(n - 1, 0).bit_length()


def get_workspace(r: int, c: int, clear: bool = False) -> 'Dense':
    """
    Acquire an r x c scratch matrix.
    
    Args:
        r: Number of rows
        c: Number of columns
        clear: If True the elements are zeroed, otherwise they are
               whatever the previous user left behind
        
    Returns:
        A Dense matrix backed by a pooled buffer. It must be handed back
        with put_workspace() and not used afterwards.
    """
    from pydense.matrix.dense import Dense

    n = r * c
    bucket = _bucket(n)
    free = _pool.get(bucket)
    if free:
        buf = free.pop()
    else:
        buf = np.empty(1 << bucket, dtype=np.float64)
    if clear:
        buf[:n] = 0
    return Dense._from_buffer(buf, r, c, c)


def put_workspace(w: 'Dense') -> None:
    """
    Release a matrix obtained from get_workspace().
    
    The matrix is reset to the zero state so stale references cannot
    reach the recycled buffer through it.
    """
    buf = w._data
    n = len(buf)
    if n and n & (n - 1) == 0:
        _pool.setdefault(_bucket(n), []).append(buf)
    w.reset()
    w._data = np.empty(0, dtype=np.float64)


@contextmanager
def workspace(r: int, c: int, clear: bool = False) -> Iterator['Dense']:
    """
    Scoped scratch matrix.
    
    Args:
        r: Number of rows
        c: Number of columns
        clear: If True the elements are zeroed
        
    Yields:
        Dense scratch matrix, released when the block exits
    """
    w = get_workspace(r, c, clear)
    try:
        yield w
    finally:
        put_workspace(w)


def pool_size() -> int:
    """Number of buffers currently held in the free lists."""
    return sum(len(free) for free in _pool.values())


def clear_pool() -> None:
    """Drop every pooled buffer."""
    _pool.clear()
