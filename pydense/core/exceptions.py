"""
Exception hierarchy for PyDense.

All exceptions inherit from PyDenseError to allow catching any
library-specific error. The hierarchy has two deliberately separate
branches:

    ValidationError: the caller broke a contract (wrong shape, index out
        of range, unsupported norm order, mismatched triangle). These
        abort the operation immediately.

    NumericalError: the input was valid but the numbers did not
        cooperate (singular matrix, not positive definite). Callers are
        expected to catch these and branch on them.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyDenseError(Exception):
    """Base exception for all PyDense errors."""
    pass


class ValidationError(PyDenseError):
    """
    A matrix operation was called in violation of its contract.
    
    Raised when operand shapes, indices or options are invalid for the
    requested operation.
    """
    pass


class DimensionError(ValidationError):
    """
    Operand dimensions are incompatible for the requested operation.
    
    Raised for mismatched elementwise shapes, inner-dimension mismatch in
    products, and receivers whose shape does not match the result.
    
    Attributes:
        expected: Expected shape, if known
        actual: Actual shape, if known
    """
    
    def __init__(
        self,
        message: str,
        expected: tuple[int, ...] | None = None,
        actual: tuple[int, ...] | None = None
    ):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class SquareError(DimensionError):
    """Operation requires a square matrix."""
    pass


class IndexOutOfRangeError(ValidationError, IndexError):
    """
    Access outside the valid bounds of a matrix or vector.
    
    Attributes:
        index: The offending index, if a single index is at fault
        bound: The exclusive upper bound that was violated
    """
    
    def __init__(
        self,
        message: str,
        index: int | None = None,
        bound: int | None = None
    ):
        super().__init__(message)
        self.index = index
        self.bound = bound


class RowAccessError(IndexOutOfRangeError):
    """Row index out of range."""
    pass


class ColAccessError(IndexOutOfRangeError):
    """Column index out of range."""
    pass


class VectorAccessError(IndexOutOfRangeError):
    """Vector element index out of range."""
    pass


class NormOrderError(ValidationError, ValueError):
    """
    Unsupported matrix norm order requested.
    
    Attributes:
        order: The rejected order
    """
    
    def __init__(self, message: str, order: float | None = None):
        super().__init__(message)
        self.order = order


class TriangleError(ValidationError):
    """A triangular operand's stored half does not match the requested half."""
    pass


class StrideError(ValidationError):
    """Raw storage has a layout that cannot back a dense matrix."""
    pass


class NumericalError(PyDenseError):
    """
    Numerical computation failed.
    
    Base class for recoverable outcomes of numerically valid input.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or rank deficient.
    
    Raised when a solve requires full rank but the factorization shows
    that the matrix lacks it.
    
    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically min(m, n))
    """
    
    def __init__(
        self, 
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class NotPositiveDefiniteError(NumericalError):
    """
    Matrix is not positive definite.
    
    Cholesky factorization reports this as a False return value; this
    exception is for callers that want to raise it themselves.
    
    Attributes:
        matrix_name: Name/description of the problematic matrix
        pivot: Index of the first non-positive pivot, if known
    """
    
    def __init__(
        self, 
        message: str,
        matrix_name: str | None = None,
        pivot: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.pivot = pivot


class ConvergenceError(PyDenseError):
    """
    Iterative algorithm failed to converge.
    
    Raised when the implicit QL/QR iterations of the eigen and singular
    value decompositions exceed their iteration budget.
    
    Attributes:
        iterations: Number of iterations completed
        reason: Why convergence failed (e.g., 'max_iterations')
        algorithm: Name of the iteration that gave up (e.g., 'tql2')
    """
    
    def __init__(
        self, 
        message: str, 
        iterations: int, 
        reason: str | None = None,
        algorithm: str | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.reason = reason
        self.algorithm = algorithm


class FormatError(PyDenseError, ValueError):
    """
    A binary matrix payload is malformed.
    
    Attributes:
        expected_bytes: Number of bytes the header promised
        actual_bytes: Number of bytes available
    """
    
    def __init__(
        self,
        message: str,
        expected_bytes: int | None = None,
        actual_bytes: int | None = None
    ):
        super().__init__(message)
        self.expected_bytes = expected_bytes
        self.actual_bytes = actual_bytes
