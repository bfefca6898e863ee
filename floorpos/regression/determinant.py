"""Determinant of a square matrix by Gaussian elimination.

The determinant is the building block of the Cramer's-rule solver used by
IncrementalPolynomialFit. Matrices up to 2x2 are evaluated directly; larger
ones are brought into row echelon form with partial pivoting and the
determinant is the signed product of the pivots.

Author: Navigation Engineer
Date: 2026
"""

from typing import Optional

import numpy as np


def determinant(matrix: Optional[np.ndarray]) -> float:
    """
    Compute det(A) of a square matrix.

    The matrix order is taken from its shape, order = dim - 1:
        - order -1 (empty matrix or None): 0.0, the "no matrix" sentinel
        - order 0: the single element
        - order 1: a11*a22 - a12*a21
        - order >= 2: Gaussian elimination with partial pivoting

    For the elimination, each column selects the row at or below the
    diagonal with the largest absolute value (the first one on ties). Every
    row swap flips the sign of the determinant. A pivot of exactly 0.0 means
    the matrix is singular and 0.0 is returned immediately.

    The input is never modified; elimination runs on a scratch copy.

    Args:
        matrix: Square matrix, shape (n, n), or None / shape (0, 0).

    Returns:
        Determinant as a Python float.

    Raises:
        ValueError: If the matrix is not 2D or not square.

    Examples:
        >>> determinant(np.array([[2.0, 1.0], [1.0, 3.0]]))
        5.0
        >>> determinant(np.zeros((3, 3)))
        0.0
    """
    if matrix is None:
        return 0.0

    A = np.asarray(matrix, dtype=float)
    if A.size == 0:
        return 0.0

    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"matrix must be square 2D array, got shape {A.shape}")

    order = A.shape[0] - 1

    if order == 0:
        return float(A[0, 0])
    if order == 1:
        return float(A[0, 0] * A[1, 1] - A[0, 1] * A[1, 0])

    work = A.copy()
    n = order + 1
    det = 1.0

    for i in range(n):
        # Partial pivoting: argmax returns the first maximum
        pivot_row = i + int(np.argmax(np.abs(work[i:, i])))
        pivot = work[pivot_row, i]

        if pivot == 0.0:
            return 0.0

        if pivot_row != i:
            work[[i, pivot_row], :] = work[[pivot_row, i], :]
            det = -det

        det *= pivot

        # Eliminate below the pivot (only columns right of i are read later)
        if i + 1 < n:
            factors = work[i + 1 :, i] / pivot
            work[i + 1 :, i + 1 :] -= np.outer(factors, work[i, i + 1 :])

    return float(det)
