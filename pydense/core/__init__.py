"""
Core infrastructure for PyDense.

Shared abstractions used by the storage types and the decompositions.

Key components:
    protocols: Matrix capability protocols
    exceptions: Exception hierarchy
    validation: Input validators
    precision: Algorithm defaults and iteration budgets
    tolerances: Comparison tolerance tiers
"""

from pydense.core.protocols import (
    Matrix,
    Mutable,
    Vectorer,
    RawMatrixer,
    RawVectorer,
    Symmetric,
    RawSymmetricer,
    Triangular,
    RawTriangular,
    Deter,
)
from pydense.core.exceptions import (
    PyDenseError,
    ValidationError,
    DimensionError,
    SquareError,
    IndexOutOfRangeError,
    RowAccessError,
    ColAccessError,
    VectorAccessError,
    NormOrderError,
    TriangleError,
    StrideError,
    NumericalError,
    SingularMatrixError,
    NotPositiveDefiniteError,
    ConvergenceError,
    FormatError,
)

__all__ = [
    # Protocols
    "Matrix",
    "Mutable",
    "Vectorer",
    "RawMatrixer",
    "RawVectorer",
    "Symmetric",
    "RawSymmetricer",
    "Triangular",
    "RawTriangular",
    "Deter",
    # Exceptions
    "PyDenseError",
    "ValidationError",
    "DimensionError",
    "SquareError",
    "IndexOutOfRangeError",
    "RowAccessError",
    "ColAccessError",
    "VectorAccessError",
    "NormOrderError",
    "TriangleError",
    "StrideError",
    "NumericalError",
    "SingularMatrixError",
    "NotPositiveDefiniteError",
    "ConvergenceError",
    "FormatError",
]
