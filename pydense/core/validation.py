"""
Contract checks for PyDense operations.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about caller intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Operation names included in all error messages
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pydense.core.exceptions import (
    ColAccessError,
    DimensionError,
    RowAccessError,
    SquareError,
    ValidationError,
    VectorAccessError,
)


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.float64]:
    """
    Validate and convert input to a flat float64 array.
    
    Accepts any array-like. A float64 ndarray is returned without a copy
    so callers can back a matrix with existing storage; anything else is
    converted.
    
    Args:
        array: Input to validate
        name: Parameter name for error messages
        
    Returns:
        1-D numpy.ndarray of float64
        
    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e
    
    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if not np.issubdtype(result.dtype, np.number) or np.issubdtype(result.dtype, np.complexfloating):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected real numeric data"
        )

    if result.dtype != np.float64:
        result = result.astype(np.float64)

    if result.ndim != 1:
        result = result.reshape(-1)

    return result


def check_length(data: NDArray[Any], n: int, name: str) -> None:
    """
    Verify a backing buffer holds exactly n elements.
    
    Raises:
        DimensionError: If len(data) != n
    """
    if len(data) != n:
        raise DimensionError(
            f"{name}: data length {len(data)} does not match required {n}",
            expected=(n,),
            actual=(len(data),),
        )


def check_non_negative(n: int, name: str) -> None:
    """
    Verify a dimension is not negative.
    
    Raises:
        ValueError: If n < 0
    """
    if n < 0:
        raise ValueError(f"pydense: negative dimension {name}={n}")


def check_row(i: int, rows: int) -> None:
    """
    Verify a row index is in [0, rows).
    
    Raises:
        RowAccessError: If the index is out of range
    """
    if i < 0 or i >= rows:
        raise RowAccessError(
            f"row index {i} out of range [0, {rows})", index=i, bound=rows
        )


def check_col(j: int, cols: int) -> None:
    """
    Verify a column index is in [0, cols).
    
    Raises:
        ColAccessError: If the index is out of range
    """
    if j < 0 or j >= cols:
        raise ColAccessError(
            f"column index {j} out of range [0, {cols})", index=j, bound=cols
        )


def check_vector_index(i: int, n: int) -> None:
    """
    Verify a vector index is in [0, n).
    
    Raises:
        VectorAccessError: If the index is out of range
    """
    if i < 0 or i >= n:
        raise VectorAccessError(
            f"vector index {i} out of range [0, {n})", index=i, bound=n
        )


def check_same_shape(
    a_shape: tuple[int, int],
    b_shape: tuple[int, int],
    op: str,
) -> None:
    """
    Verify two operands have identical shape.
    
    Args:
        a_shape: Shape of the first operand
        b_shape: Shape of the second operand
        op: Operation name for error messages
        
    Raises:
        DimensionError: If shapes differ
    """
    if a_shape != b_shape:
        raise DimensionError(
            f"{op}: dimension mismatch {a_shape} vs {b_shape}",
            expected=a_shape,
            actual=b_shape,
        )


def check_square(shape: tuple[int, int], op: str) -> None:
    """
    Verify a shape is square.
    
    Raises:
        SquareError: If rows != cols
    """
    if shape[0] != shape[1]:
        raise SquareError(
            f"{op}: expect square matrix, got {shape[0]}x{shape[1]}",
            actual=shape,
        )


def check_inner(inner_a: int, inner_b: int, op: str) -> None:
    """
    Verify the inner dimensions of a product agree.
    
    Raises:
        DimensionError: If inner_a != inner_b
    """
    if inner_a != inner_b:
        raise DimensionError(
            f"{op}: inner dimension mismatch {inner_a} vs {inner_b}",
            expected=(inner_a,),
            actual=(inner_b,),
        )
