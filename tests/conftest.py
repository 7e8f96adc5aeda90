"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pydense.matrix.dense import new_dense
from pydense.matrix.workspace import clear_pool


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def square(rng):
    """Well-conditioned 5x5 matrix as (Dense, ndarray copy)."""
    a = rng.standard_normal((5, 5)) + 5 * np.eye(5)
    return new_dense(5, 5, a.ravel().copy()), a


@pytest.fixture
def tall(rng):
    """Full column rank 7x4 matrix as (Dense, ndarray copy)."""
    a = rng.standard_normal((7, 4))
    return new_dense(7, 4, a.ravel().copy()), a


@pytest.fixture
def wide(rng):
    """Full row rank 3x6 matrix as (Dense, ndarray copy)."""
    a = rng.standard_normal((3, 6))
    return new_dense(3, 6, a.ravel().copy()), a


@pytest.fixture
def spd(rng):
    """Symmetric positive definite 6x6 ndarray."""
    x = rng.standard_normal((6, 6))
    return x @ x.T + 6 * np.eye(6)


@pytest.fixture(autouse=True)
def empty_workspace_pool():
    """Start every test with no pooled scratch buffers."""
    clear_pool()
    yield
    clear_pool()
