"""Type definitions and data structures for corridor fingerprinting.

This module defines the data structures shared by calibration, map building
and position search: signal readings, per-emitter fingerprints, the position
grid, the fingerprint map and the position estimate.

Author: Navigation Engineer
Date: 2026
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from floorpos.regression import IncrementalPolynomialFit


@dataclass(frozen=True)
class Reading:
    """A single signal measurement of one emitter, e.g. one WiFi scan entry.

    Attributes:
        emitter_id: Emitter identifier, e.g. the access point BSSID.
        signal: Received signal strength (dBm).
    """

    emitter_id: str
    signal: float


@dataclass(frozen=True)
class ScanRecord:
    """A calibration measurement: a reading taken at a known position.

    Attributes:
        position: Position along the corridor (survey units, e.g. meters).
        emitter_id: Emitter identifier.
        signal: Received signal strength (dBm).
    """

    position: float
    emitter_id: str
    signal: float


class FingerprintStatus(Enum):
    """Whether a fingerprint slot currently belongs to an emitter."""

    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"


@dataclass
class EmitterFingerprint:
    """
    Calibrated model of one emitter's signal strength versus position.

    A fingerprint owns an IncrementalPolynomialFit that learns
    (position, signal) pairs. A slot only becomes ASSIGNED together with its
    first learned sample, so an assigned fingerprint always has data.

    Attributes:
        fit: Regression model (degree 5 during calibration, degree 0 when
             averaging live scans).
        emitter_id: Identifier of the emitter, "" while unassigned.
        status: FingerprintStatus tag.

    Example:
        >>> fp = EmitterFingerprint(IncrementalPolynomialFit(degree=5))
        >>> fp.assign("aa:bb:cc:dd:ee:ff", position=0.0, signal=-40.0)
        >>> fp.is_assigned
        True
    """

    fit: IncrementalPolynomialFit
    emitter_id: str = ""
    status: FingerprintStatus = FingerprintStatus.UNASSIGNED

    @property
    def is_assigned(self) -> bool:
        return self.status is FingerprintStatus.ASSIGNED

    def assign(self, emitter_id: str, position: float, signal: float) -> None:
        """Bind the slot to an emitter and learn its first sample."""
        if self.is_assigned:
            raise ValueError(
                f"Fingerprint already assigned to {self.emitter_id!r}, "
                f"cannot reassign to {emitter_id!r}"
            )
        self.emitter_id = emitter_id
        self.fit.name = emitter_id
        self.status = FingerprintStatus.ASSIGNED
        self.fit.learn(position, signal)

    def learn(self, position: float, signal: float) -> None:
        if not self.is_assigned:
            raise ValueError("Cannot learn on an unassigned fingerprint; call assign()")
        self.fit.learn(position, signal)

    def release(self) -> None:
        """Reset the fit and return the slot to the unassigned state."""
        self.fit.reset()
        self.fit.name = ""
        self.emitter_id = ""
        self.status = FingerprintStatus.UNASSIGNED


def _round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(np.sign(value) * np.floor(abs(value) + 0.5))


@dataclass(frozen=True)
class PositionGrid:
    """
    Ordered, immutable sequence of candidate positions.

    Attributes:
        positions: Position values, shape (G,), non-decreasing, G >= 1.

    Example:
        >>> grid = PositionGrid.from_range(0.0, 3.0)
        >>> grid.positions
        array([0. , 0.5, 1. , 1.5, 2. , 2.5])
    """

    positions: np.ndarray

    def __post_init__(self) -> None:
        positions = np.array(self.positions, dtype=float)
        if positions.ndim != 1:
            raise ValueError(f"positions must be 1D array, got shape {positions.shape}")
        if positions.size == 0:
            raise ValueError("positions must contain at least one value")
        if not np.all(np.isfinite(positions)):
            raise ValueError("positions contain non-finite values")
        if np.any(np.diff(positions) < 0):
            raise ValueError("positions must be sorted in ascending order")
        positions.setflags(write=False)
        object.__setattr__(self, "positions", positions)

    @classmethod
    def from_range(cls, min_pos: float, max_pos: float) -> "PositionGrid":
        """
        Build the half-unit grid over an observed position range.

        The number of points is 2 * round(max_pos - min_pos) (at least 1)
        and point i sits at min_pos + i * round(max_pos - min_pos) / count.

        Raises:
            ValueError: If max_pos < min_pos or either bound is not finite.
        """
        if not (np.isfinite(min_pos) and np.isfinite(max_pos)):
            raise ValueError(f"Position range must be finite, got [{min_pos}, {max_pos}]")
        if max_pos < min_pos:
            raise ValueError(f"max_pos ({max_pos}) must be >= min_pos ({min_pos})")

        span = _round_half_away(max_pos - min_pos)
        count = max(2 * span, 1)
        positions = min_pos + np.arange(count) * (span / count)
        return cls(positions)

    def __len__(self) -> int:
        return self.positions.shape[0]

    def is_boundary(self, index: int) -> bool:
        """True for the first or last grid index."""
        return index == 0 or index == len(self) - 1


@dataclass(frozen=True)
class FingerprintMap:
    """
    Precomputed signal map: expected signal per emitter per grid position.

    Attributes:
        grid: PositionGrid with G positions.
        emitter_ids: Ordered emitter identifiers, length E, unique.
        lookup: Expected signal strength, shape (E, G); row e belongs to
                emitter_ids[e].
        meta: Metadata dictionary (e.g. 'unit', 'outside_value', 'degree').

    The arrays are read-only; a recalibration builds a new map.

    Example:
        >>> fmap = FingerprintMap(
        ...     grid=PositionGrid(np.array([0.0, 0.5, 1.0])),
        ...     emitter_ids=("AP1",),
        ...     lookup=np.array([[-40.0, -50.0, -60.0]]),
        ... )
        >>> fmap.row("AP1")
        array([-40., -50., -60.])
    """

    grid: PositionGrid
    emitter_ids: Tuple[str, ...]
    lookup: np.ndarray
    meta: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate data structure consistency after initialization."""
        if not isinstance(self.grid, PositionGrid):
            raise TypeError(f"grid must be a PositionGrid, got {type(self.grid)}")

        emitter_ids = tuple(self.emitter_ids)
        for emitter_id in emitter_ids:
            if not isinstance(emitter_id, str) or not emitter_id:
                raise ValueError(f"emitter ids must be non-empty strings, got {emitter_id!r}")
        if len(set(emitter_ids)) != len(emitter_ids):
            raise ValueError("emitter ids must be unique")

        lookup = np.array(self.lookup, dtype=float)
        if lookup.size == 0 and not emitter_ids:
            lookup = lookup.reshape(0, len(self.grid))
        if lookup.ndim != 2:
            raise ValueError(f"lookup must be 2D array (E, G), got shape {lookup.shape}")
        expected = (len(emitter_ids), len(self.grid))
        if lookup.shape != expected:
            raise ValueError(
                f"lookup shape {lookup.shape} does not match "
                f"(n_emitters, n_positions) = {expected}"
            )
        if np.any(np.isnan(lookup)):
            raise ValueError("lookup contains NaN values (not allowed)")
        lookup.setflags(write=False)

        object.__setattr__(self, "emitter_ids", emitter_ids)
        object.__setattr__(self, "lookup", lookup)
        object.__setattr__(self, "_index", {e: i for i, e in enumerate(emitter_ids)})

    @property
    def positions(self) -> np.ndarray:
        return self.grid.positions

    @property
    def n_positions(self) -> int:
        """Number of grid positions (G)."""
        return len(self.grid)

    @property
    def n_emitters(self) -> int:
        """Number of emitters (E) in the map."""
        return len(self.emitter_ids)

    @property
    def is_empty(self) -> bool:
        return self.n_emitters == 0

    def __contains__(self, emitter_id: object) -> bool:
        return emitter_id in self._index

    def index_of(self, emitter_id: str) -> int:
        """
        Row index of an emitter.

        Raises:
            KeyError: If the emitter is not part of the map.
        """
        try:
            return self._index[emitter_id]
        except KeyError:
            raise KeyError(f"Emitter {emitter_id!r} not in fingerprint map") from None

    def row(self, emitter_id: str) -> np.ndarray:
        """Expected signal of one emitter at every grid position, shape (G,)."""
        return self.lookup[self.index_of(emitter_id)]

    def __repr__(self) -> str:
        if self.n_positions:
            extent = f"[{self.positions[0]:.2f}, {self.positions[-1]:.2f}]"
        else:
            extent = "[]"
        return (
            f"FingerprintMap(n_emitters={self.n_emitters}, "
            f"n_positions={self.n_positions}, extent={extent})"
        )


class EstimateStatus(Enum):
    """Outcome of a position query."""

    POSITION = "position"
    OUT_OF_RANGE = "out of range"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PositionEstimate:
    """
    Result of matching a scan batch against a FingerprintMap.

    Attributes:
        status: POSITION for a numeric answer, OUT_OF_RANGE when the best
                match lies on the first or last grid position, UNKNOWN when
                no emitter could be matched.
        position: Best matching grid position, None unless status is POSITION.
        index: Grid index of the best match (None for UNKNOWN).
        min_sum: Sum of squared signal differences at the best match.
        n_matched: Number of emitters present in both the batch and the map.
        sums: Sum-of-squares profile over the grid, shape (G,), or None.
    """

    status: EstimateStatus
    position: Optional[float] = None
    index: Optional[int] = None
    min_sum: Optional[float] = None
    n_matched: int = 0
    sums: Optional[np.ndarray] = None

    @property
    def is_position(self) -> bool:
        return self.status is EstimateStatus.POSITION

    def describe(self, decimals: int = 2) -> str:
        """Render as a display string: the position, 'out of range' or 'unknown'."""
        if self.is_position:
            return f"{self.position:.{decimals}f}"
        return self.status.value
