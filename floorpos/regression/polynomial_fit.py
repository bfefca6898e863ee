"""Streaming polynomial regression with Cramer's rule.

This module implements a least-squares polynomial fit that learns one (x, y)
pair at a time without storing the pairs. The normal equations of a
degree-k polynomial

    | N          Σx_i      ...  Σx_i^k     |   | a_0 |   | Σy_i       |
    | Σx_i       Σx_i^2    ...  Σx_i^(k+1) |   | a_1 |   | Σx_i y_i   |
    | ...        ...       ...  ...        | * | ... | = | ...        |
    | Σx_i^k     Σx_i^(k+1) ... Σx_i^2k    |   | a_k |   | Σx_i^k y_i |

only depend on the accumulated power sums, so the moment matrix M and the
vector b are all the model needs to keep. After every learned pair the
coefficients are solved with Cramer's rule:

    a_n = det(M_n) / det(M)

where M_n is M with its n-th column replaced by b.

Degree 0 gives the mean of the y values, degree 1 a regression line. Above
degree 6-7 the double-precision power sums start to lose accuracy.

Author: Navigation Engineer
Date: 2026
"""

import logging
from typing import Optional, Union

import numpy as np

from .determinant import determinant

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


class InsufficientDataError(ValueError):
    """Raised when the moment matrix is singular and no coefficients exist."""


def _allocate(shape) -> np.ndarray:
    """Allocate a zero-filled accumulator."""
    return np.zeros(shape, dtype=float)


class IncrementalPolynomialFit:
    """
    Incremental least-squares fit of y = a_k x^k + ... + a_1 x + a_0.

    The model keeps the moment matrix M (M[i, j] = Σ x^(i+j)), the vector
    b (b[n] = Σ x^n y), the coefficients a, the sample count N and the
    observed range [min_x, max_x]. Memory is O(degree²) regardless of N.

    The moment matrix is singular exactly when fewer than degree + 1
    distinct x values have been learned. The model tracks up to degree + 1
    distinct x values (O(degree) extra memory) and only counts as solved
    once that many are known and det(M) != 0; rounding in the elimination
    can otherwise leave a tiny non-zero det(M) for a rank deficient M.
    Unsolved models are handled in one of two ways:
        - strict=True (default): coefficients are left untouched,
          ``is_solved`` is False and predict() / estimate_*() raise
          InsufficientDataError until enough data has been learned.
        - strict=False: the division det(M_n) / det(M) is carried out
          anyway. An exactly singular M gives ±inf or NaN coefficients,
          a rank deficient M with rounding noise gives meaningless finite
          ones; either propagates into every prediction.

    Attributes:
        name: Free-form label, e.g. the emitter the fit belongs to.

    Example:
        >>> fit = IncrementalPolynomialFit(degree=1)
        >>> for x, y in [(0, 1.0), (1, 3.0), (2, 5.0)]:
        ...     fit.learn(x, y)
        >>> fit.get_coefficients()
        array([1., 2.])
        >>> fit.predict(3.0)
        7.0
    """

    def __init__(self, degree: int = 2, strict: bool = True, name: str = ""):
        self.name = name
        self._strict = strict
        self._order = -1
        self._M = np.zeros((0, 0))
        self._b = np.zeros(0)
        self._a = np.zeros(0)
        self._distinct_x = []
        self._count = 0
        self._min_x = 0.0
        self._max_x = 0.0
        self._solved = False
        self.init(degree)

    def init(self, degree: int) -> bool:
        """
        (Re)allocate the accumulators for a new degree and reset the model.

        Args:
            degree: Polynomial degree (>= 0).

        Returns:
            True on success. False if the accumulators could not be
            allocated; the model is then not ready and learn() does nothing.

        Raises:
            ValueError: If degree is negative.
        """
        if int(degree) != degree or degree < 0:
            raise ValueError(f"degree must be a non-negative integer, got {degree}")
        degree = int(degree)

        try:
            M = _allocate((degree + 1, degree + 1))
            b = _allocate(degree + 1)
            a = _allocate(degree + 1)
        except MemoryError:
            logger.warning("Unable to allocate accumulators for degree %d", degree)
            self._order = -1
            self._M = np.zeros((0, 0))
            self._b = np.zeros(0)
            self._a = np.zeros(0)
            self.reset()
            return False

        self._order = degree
        self._M, self._b, self._a = M, b, a
        self.reset()
        return True

    def reset(self) -> None:
        """Clear all accumulated sums and coefficients, keeping the degree."""
        self._M.fill(0.0)
        self._b.fill(0.0)
        self._a.fill(0.0)
        self._count = 0
        self._distinct_x = []
        self._min_x = 0.0
        self._max_x = 0.0
        self._solved = False

    @property
    def degree(self) -> int:
        """Polynomial degree, -1 if the model is not ready."""
        return self._order

    @property
    def count(self) -> int:
        """Number of pairs learned since the last reset."""
        return self._count

    @property
    def min_x(self) -> float:
        return self._min_x

    @property
    def max_x(self) -> float:
        return self._max_x

    @property
    def is_ready(self) -> bool:
        """True if the accumulators are allocated."""
        return self._order >= 0

    @property
    def is_solved(self) -> bool:
        """True once degree + 1 distinct x values give a non-singular M."""
        return self._solved

    @property
    def moment_matrix(self) -> np.ndarray:
        """Copy of the moment matrix M."""
        return self._M.copy()

    def learn(self, x: float, y: float) -> None:
        """
        Add one (x, y) pair and re-solve the coefficients.

        The moment matrix is Hankel, so only the first column and the last
        row of every other column need a new power term; the remaining
        entries are copied along the anti-diagonal from the previous column.

        Args:
            x: Independent variable (e.g. position).
            y: Dependent variable (e.g. signal strength).
        """
        if self._order < 0:
            return

        x = float(x)
        y = float(y)

        self._count += 1
        if self._count == 1:
            self._min_x = x
            self._max_x = x
        else:
            self._min_x = min(self._min_x, x)
            self._max_x = max(self._max_x, x)
        if len(self._distinct_x) <= self._order and x not in self._distinct_x:
            self._distinct_x.append(x)

        k = self._order
        M = self._M
        powers = x ** np.arange(k + 1, dtype=float)

        M[:, 0] += powers
        for j in range(1, k + 1):
            # M[i, j] = M[i+1, j-1] for i < k
            M[:k, j] = M[1:, j - 1]
            M[k, j] += x ** (k + j)
        M[0, 0] = self._count

        self._b += powers * y

        self._solve()

    def _solve(self) -> None:
        det_M = determinant(self._M)
        self._solved = len(self._distinct_x) > self._order and det_M != 0.0

        if not self._solved and self._strict:
            logger.debug(
                "Singular moment matrix for %r (N=%d, %d distinct x, degree=%d)",
                self.name, self._count, len(self._distinct_x), self._order,
            )
            return

        Mn = np.empty_like(self._M)
        with np.errstate(divide="ignore", invalid="ignore"):
            for n in range(self._order + 1):
                Mn[:, :] = self._M
                Mn[:, n] = self._b
                self._a[n] = np.float64(determinant(Mn)) / det_M

    def _check_solved(self) -> None:
        if self._strict and not self._solved:
            raise InsufficientDataError(
                f"Polynomial of degree {self._order} is underdetermined: "
                f"{self._count} sample(s) learned, moment matrix is singular"
            )

    def predict(self, x: ArrayLike, outside_value: Optional[float] = None) -> ArrayLike:
        """
        Evaluate Σ a_i x^i.

        Args:
            x: Scalar or array of x values.
            outside_value: If given, returned for every x outside the learned
                           range [min_x, max_x] instead of extrapolating.

        Returns:
            Predicted y as float (scalar input) or array (array input).

        Raises:
            InsufficientDataError: In strict mode, if the model is not solved.
        """
        self._check_solved()

        xs = np.asarray(x, dtype=float)
        if self._a.size == 0:
            y = np.zeros_like(xs)
        else:
            y = np.polynomial.polynomial.polyval(xs, self._a)

        if outside_value is not None:
            outside = (xs > self._max_x) | (xs < self._min_x)
            y = np.where(outside, float(outside_value), y)

        if np.ndim(y) == 0:
            return float(y)
        return y

    def _sample_range(self, steps: int) -> np.ndarray:
        if steps < 0:
            raise ValueError(f"steps must be >= 0, got {steps}")
        steps = max(int(steps), 1)
        step_width = (self._max_x - self._min_x) / steps
        xs = self._min_x + np.arange(steps + 1) * step_width
        return self.predict(xs)

    def estimate_max_y(self, steps: int = 100) -> float:
        """
        Estimate the largest y over [min_x, max_x].

        The polynomial is sampled at steps + 1 evenly spaced points, so this
        is a heuristic bound rather than the exact extremum.
        """
        return float(np.max(self._sample_range(steps)))

    def estimate_min_y(self, steps: int = 100) -> float:
        """Estimate the smallest y over [min_x, max_x] (see estimate_max_y)."""
        return float(np.min(self._sample_range(steps)))

    def get_coefficients(self) -> np.ndarray:
        """Return a copy of [a_0, a_1, ..., a_k]."""
        return self._a.copy()

    def get_formula(self, decimals: int = 6) -> str:
        """
        Render the fitted polynomial, highest power first.

        Example:
            >>> fit.get_formula(decimals=2)
            '(3) y= 2.00x +1.00'
        """
        formula = f"({self._count}) y= "
        for i in range(self._order, -1, -1):
            coefficient = self._a[i]
            if coefficient > 0 and i < self._order:
                formula += "+"
            if i > 1:
                formula += f"{coefficient:.{decimals}f}x^{i} "
            elif i == 1:
                formula += f"{coefficient:.{decimals}f}x "
            else:
                formula += f"{coefficient:.{decimals}f}"
        return formula

    def __repr__(self) -> str:
        return (
            f"IncrementalPolynomialFit(degree={self._order}, n={self._count}, "
            f"range=[{self._min_x:.2f}, {self._max_x:.2f}], solved={self._solved})"
        )
