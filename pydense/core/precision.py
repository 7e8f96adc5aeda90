"""
Numerical precision constants and iteration budgets.

These are the defaults for every algorithm knob in the package. Each
decomposition accepts the corresponding keyword argument, so the values
here only matter when the caller does not override them.
"""

import numpy as np


# Relative tolerance used by the iterative eigen and singular value
# algorithms. Slightly larger than float64 machine epsilon (~2.220446e-16).
EPSILON: float = 2.2204e-16

# Smallest positive subnormal float64; absolute floor for negligible
# singular values.
SMALL: float = float(np.finfo(np.float64).smallest_subnormal)

# Iteration budget per eigenvalue / singular value. tql2, hqr2 and the
# SVD main loop stop with ConvergenceError after MAX_ITER_PER_VALUE * n
# passes.
MAX_ITER_PER_VALUE: int = 100

# Matrix exponential: 2**-EXP_SCALING scaling, EXP_TERMS Taylor terms,
# then EXP_SCALING squarings.
EXP_TERMS: int = 10
EXP_SCALING: int = 4


def machine_epsilon(dtype: np.dtype | type = np.float64) -> float:
    """
    Get machine epsilon for a given dtype.
    
    Args:
        dtype: NumPy dtype or type
        
    Returns:
        Machine epsilon for the dtype
    """
    return float(np.finfo(dtype).eps)


def default_max_iter(n: int) -> int:
    """Iteration budget for an n-value iterative decomposition."""
    return MAX_ITER_PER_VALUE * max(n, 1)
