"""
Tests for precision constants and tolerance tiers.
"""

import numpy as np

from pydense.core.precision import (
    EPSILON,
    MAX_ITER_PER_VALUE,
    SMALL,
    default_max_iter,
    machine_epsilon,
)
from pydense.core.tolerances import DEFAULT, EXACT, LOOSE, select_tolerance


class TestPrecision:

    def test_epsilon_close_to_machine_epsilon(self):
        assert EPSILON >= machine_epsilon() * 0.99
        assert EPSILON < 2 * machine_epsilon()

    def test_small_is_subnormal(self):
        assert 0 < SMALL < np.finfo(np.float64).tiny

    def test_machine_epsilon_float32(self):
        assert machine_epsilon(np.float32) > machine_epsilon(np.float64)

    def test_default_max_iter_scales_with_n(self):
        assert default_max_iter(5) == 5 * MAX_ITER_PER_VALUE
        assert default_max_iter(0) == MAX_ITER_PER_VALUE


class TestTolerances:

    def test_exact_is_zero(self):
        assert EXACT.rtol == 0.0
        assert EXACT.atol == 0.0

    def test_select_default(self):
        assert select_tolerance() is DEFAULT

    def test_select_iterative(self):
        assert select_tolerance(iterative=True) is LOOSE

    def test_select_ill_conditioned(self):
        assert select_tolerance(condition_number=1e9) is LOOSE
        assert select_tolerance(condition_number=10.0) is DEFAULT
