"""
Tests for the PyDense exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyDenseError)
    - Contract violations and numerical outcomes stay on separate branches
    - Diagnostic attributes and their None defaults
    - Compatibility with the builtin IndexError / ValueError
"""

import pytest

from pydense.core.exceptions import (
    ColAccessError,
    ConvergenceError,
    DimensionError,
    FormatError,
    IndexOutOfRangeError,
    NormOrderError,
    NotPositiveDefiniteError,
    NumericalError,
    PyDenseError,
    RowAccessError,
    SingularMatrixError,
    SquareError,
    StrideError,
    TriangleError,
    ValidationError,
    VectorAccessError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyDenseError."""

    @pytest.mark.parametrize("exc", [
        DimensionError,
        SquareError,
        IndexOutOfRangeError,
        RowAccessError,
        ColAccessError,
        VectorAccessError,
        TriangleError,
        StrideError,
    ])
    def test_contract_violations_are_validation_errors(self, exc):
        with pytest.raises(ValidationError):
            raise exc("bad call")

    def test_square_error_is_dimension_error(self):
        with pytest.raises(DimensionError):
            raise SquareError("not square")

    def test_norm_order_error_is_validation_and_value_error(self):
        err = NormOrderError("bad norm", order=3)
        assert isinstance(err, ValidationError)
        assert isinstance(err, ValueError)

    @pytest.mark.parametrize("exc", [RowAccessError, ColAccessError, VectorAccessError])
    def test_access_errors_are_index_errors(self, exc):
        with pytest.raises(IndexError):
            raise exc("out of range")

    def test_singular_is_numerical_not_validation(self):
        err = SingularMatrixError("singular")
        assert isinstance(err, NumericalError)
        assert not isinstance(err, ValidationError)

    def test_not_positive_definite_is_numerical_error(self):
        with pytest.raises(NumericalError):
            raise NotPositiveDefiniteError("not PD")

    def test_convergence_error_is_pydense_error(self):
        with pytest.raises(PyDenseError):
            raise ConvergenceError("did not converge", iterations=10)

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise FormatError("truncated")
        assert issubclass(FormatError, PyDenseError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestAttributes:

    def test_dimension_error_attributes(self):
        err = DimensionError("mismatch", expected=(2, 3), actual=(3, 2))
        assert err.expected == (2, 3)
        assert err.actual == (3, 2)
        assert str(err) == "mismatch"

    def test_dimension_error_defaults(self):
        err = DimensionError("mismatch")
        assert err.expected is None
        assert err.actual is None

    def test_index_error_attributes(self):
        err = RowAccessError("row out of range", index=5, bound=3)
        assert err.index == 5
        assert err.bound == 3

    def test_singular_matrix_attributes(self):
        err = SingularMatrixError(
            "singular",
            matrix_name="U",
            condition_number=1e18,
            rank=2,
            expected_rank=3,
        )
        assert err.matrix_name == "U"
        assert err.condition_number == 1e18
        assert err.rank == 2
        assert err.expected_rank == 3

    def test_singular_matrix_defaults(self):
        err = SingularMatrixError("singular")
        assert err.matrix_name is None
        assert err.condition_number is None
        assert err.rank is None
        assert err.expected_rank is None

    def test_not_positive_definite_pivot(self):
        err = NotPositiveDefiniteError("not PD", matrix_name="A", pivot=1)
        assert err.matrix_name == "A"
        assert err.pivot == 1

    def test_convergence_attributes(self):
        err = ConvergenceError(
            "stuck", iterations=300, reason="max_iterations", algorithm="hqr2"
        )
        assert err.iterations == 300
        assert err.reason == "max_iterations"
        assert err.algorithm == "hqr2"

    def test_format_error_byte_counts(self):
        err = FormatError("short", expected_bytes=48, actual_bytes=20)
        assert err.expected_bytes == 48
        assert err.actual_bytes == 20
