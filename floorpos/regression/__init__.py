"""Streaming polynomial regression.

Main components:
    - determinant: Gaussian elimination with partial pivoting
    - IncrementalPolynomialFit: least-squares polynomial fit that learns
      one (x, y) pair at a time and solves the normal equations with
      Cramer's rule

Example usage:
    >>> from floorpos.regression import IncrementalPolynomialFit
    >>> fit = IncrementalPolynomialFit(degree=1)
    >>> fit.learn(0.0, 1.0)
    >>> fit.learn(1.0, 3.0)
    >>> fit.predict(0.5)
    2.0
"""

from .determinant import determinant
from .polynomial_fit import IncrementalPolynomialFit, InsufficientDataError

__all__ = [
    "determinant",
    "IncrementalPolynomialFit",
    "InsufficientDataError",
]
