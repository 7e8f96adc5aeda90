"""
PyDense: dense matrix linear algebra for Python.

Matrix and vector storage types with views over shared float64 buffers,
in-place arithmetic, and the classical decompositions built on them.

Submodules:
    core: Exceptions, protocols, validation and precision constants
    matrix: Dense, Vector, SymDense, TriDense, workspace pool, binary
            format and text formatting
    decomposition: Cholesky, LU, QR, LQ, Eigen and SVD
    solvers: det, inverse, solve and the maybe helpers
"""

__version__ = "0.1.0"

from pydense.matrix import (
    Dense,
    Vector,
    SymDense,
    TriDense,
    new_dense,
    new_vector,
    new_sym_dense,
    new_tri_dense,
    dense_copy_of,
    format_matrix,
)
from pydense.decomposition import (
    cholesky,
    lu,
    qr,
    lq,
    eigen,
    svd,
)
from pydense.solvers import det, inverse, solve, maybe, maybe_float

__all__ = [
    "__version__",
    # Storage
    "Dense",
    "Vector",
    "SymDense",
    "TriDense",
    "new_dense",
    "new_vector",
    "new_sym_dense",
    "new_tri_dense",
    "dense_copy_of",
    "format_matrix",
    # Decompositions
    "cholesky",
    "lu",
    "qr",
    "lq",
    "eigen",
    "svd",
    # Facade
    "det",
    "inverse",
    "solve",
    "maybe",
    "maybe_float",
]
