"""
Core protocols for PyDense.

These define the structural interfaces that matrix operands may satisfy.
We use Protocol (structural typing) rather than ABC (nominal typing) so
that any object with the right methods can take part in an operation,
including caller-defined matrix types.

Design Principles:
    - Minimal contract: a Matrix only needs dims() and at()
    - Capability-driven: richer protocols (RawMatrixer, Vectorer, ...)
      unlock fast paths; operations test for them with isinstance() and
      fall back to element-at-a-time access when they are absent
    - All protocols are runtime_checkable so dispatch is a plain isinstance()
"""

from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray


@runtime_checkable
class Matrix(Protocol):
    """
    Minimal read-only matrix.
    
    Every operand accepted by the package implements this protocol.
    """
    
    def dims(self) -> tuple[int, int]:
        """Number of rows and columns."""
        ...
    
    def at(self, r: int, c: int) -> float:
        """
        Element at (r, c).
        
        Raises:
            IndexOutOfRangeError: If (r, c) is outside the matrix
        """
        ...


@runtime_checkable
class Mutable(Matrix, Protocol):
    """A matrix whose elements can be altered."""
    
    def set(self, r: int, c: int, v: float) -> None:
        ...


@runtime_checkable
class Vectorer(Protocol):
    """
    A matrix that can copy out whole rows and columns.
    
    When dst is given the copy is written into it and the number of
    elements copied is the minimum of len(dst) and the row/column length.
    """
    
    def row(self, i: int, dst: NDArray[np.float64] | None = None) -> NDArray[np.float64]:
        ...
    
    def col(self, j: int, dst: NDArray[np.float64] | None = None) -> NDArray[np.float64]:
        ...


@runtime_checkable
class RawMatrixer(Protocol):
    """
    A matrix backed by strided row-major float64 storage.
    
    raw_matrix() returns a writable 2-D ndarray view; writes through it
    are visible in the matrix and vice versa.
    """
    
    def raw_matrix(self) -> NDArray[np.float64]:
        ...


@runtime_checkable
class RawVectorer(Protocol):
    """A vector backed by strided float64 storage."""
    
    def raw_vector(self) -> NDArray[np.float64]:
        ...


@runtime_checkable
class Symmetric(Matrix, Protocol):
    """A square matrix with at(i, j) == at(j, i)."""
    
    def symmetric(self) -> int:
        """Number of rows/columns."""
        ...


@runtime_checkable
class RawSymmetricer(Protocol):
    """
    A symmetric matrix backed by upper-triangle storage.
    
    raw_symmetric() returns the n x n storage view; only the upper
    triangle is meaningful.
    """
    
    def raw_symmetric(self) -> NDArray[np.float64]:
        ...


@runtime_checkable
class Triangular(Matrix, Protocol):
    """A square upper or lower triangular matrix."""
    
    def triangle(self) -> tuple[int, bool]:
        """Size and whether the matrix is upper triangular."""
        ...


@runtime_checkable
class RawTriangular(Protocol):
    """
    A triangular matrix backed by dense storage.
    
    raw_triangular() returns the n x n storage view; only the stored
    triangle is meaningful.
    """
    
    def raw_triangular(self) -> NDArray[np.float64]:
        ...


@runtime_checkable
class Deter(Protocol):
    """A matrix that can compute its own determinant."""
    
    def det(self) -> float:
        ...
