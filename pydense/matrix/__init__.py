"""
Matrix and vector storage.

Every type stores float64 values in a flat buffer addressed through a
stride (or increment), so views share memory with the matrix they were
taken from.

Public API:
    Dense, new_dense, dense_copy_of
    Vector, new_vector
    SymDense, new_sym_dense
    TriDense, new_tri_dense
    workspace, get_workspace, put_workspace
    format_matrix
"""

from pydense.matrix.dense import Dense, new_dense, dense_copy_of
from pydense.matrix.vector import Vector, new_vector
from pydense.matrix.symmetric import SymDense, new_sym_dense
from pydense.matrix.triangular import TriDense, new_tri_dense
from pydense.matrix.workspace import workspace, get_workspace, put_workspace
from pydense.matrix.format import format_matrix

__all__ = [
    "Dense",
    "new_dense",
    "dense_copy_of",
    "Vector",
    "new_vector",
    "SymDense",
    "new_sym_dense",
    "TriDense",
    "new_tri_dense",
    "workspace",
    "get_workspace",
    "put_workspace",
    "format_matrix",
]
