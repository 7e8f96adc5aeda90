"""
Tolerance tiers for approximate matrix comparison.

Used by equals_approx callers, the test suite, and anything that needs
to decide whether a reconstruction is "close enough":

- EXACT: bit-for-bit (serialization round trips)
- DEFAULT: well-conditioned factorizations
- LOOSE: iterative decompositions and ill-conditioned input
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


EXACT = ToleranceTier(
    rtol=0.0,
    atol=0.0,
    name='exact',
    description='Bitwise equality',
)

DEFAULT = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='default',
    description='Direct factorizations of well-conditioned input',
)

LOOSE = ToleranceTier(
    rtol=1e-8,
    atol=1e-9,
    name='loose',
    description='Iterative decompositions and ill-conditioned input',
)

# Condition number above which callers should expect LOOSE accuracy.
ILL_CONDITIONED_THRESHOLD = 1e6


def select_tolerance(
    iterative: bool = False,
    condition_number: float | None = None,
) -> ToleranceTier:
    """Select appropriate tolerance tier for a computation."""
    if iterative:
        return LOOSE
    if condition_number is not None and condition_number > ILL_CONDITIONED_THRESHOLD:
        return LOOSE
    return DEFAULT
