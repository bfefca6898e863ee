"""Build a fingerprint map from calibrated emitter fits.

Each calibrated emitter contributes a polynomial signal profile. Profiles
that are poorly supported or too flat to discriminate positions are
discarded, and the remaining ones are resampled on a regular position grid
to form the lookup table used by the position search.

Quality criteria (defaults from FingerprintConfig):
    - at least 6 learned samples (a 5th order polynomial needs 6)
    - estimated signal stays within [-95, -25] dBm over the learned range
    - estimated amplitude max - min of at least 15 dB

Author: Navigation Engineer
Date: 2026
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np

from .config import FingerprintConfig
from .types import EmitterFingerprint, FingerprintMap, PositionGrid

logger = logging.getLogger(__name__)


class EmptyFingerprintMapError(ValueError):
    """Raised when no emitter fit passes the quality filter."""


@dataclass(frozen=True)
class FitQuality:
    """
    Quality statistics of one emitter fit.

    Attributes:
        emitter_id: Emitter identifier.
        count: Number of learned samples.
        min_y: Estimated minimum signal over the learned range, None if the
               fit is not solved.
        max_y: Estimated maximum signal, None if the fit is not solved.
        accepted: True if the fit passes every criterion.
        reason: Why the fit was rejected ("" if accepted).
    """

    emitter_id: str
    count: int
    min_y: Optional[float]
    max_y: Optional[float]
    accepted: bool
    reason: str = ""

    @property
    def span(self) -> Optional[float]:
        if self.min_y is None or self.max_y is None:
            return None
        return abs(self.max_y - self.min_y)


def summarize_fit(
    fingerprint: EmitterFingerprint, config: Optional[FingerprintConfig] = None
) -> FitQuality:
    """
    Compute the quality statistics of a fingerprint and check the criteria.

    Args:
        fingerprint: Assigned EmitterFingerprint.
        config: Thresholds (defaults to FingerprintConfig()).

    Returns:
        FitQuality with accepted=True if all criteria hold.
    """
    if config is None:
        config = FingerprintConfig()

    fit = fingerprint.fit
    min_y = max_y = None
    if fit.is_solved:
        min_y = fit.estimate_min_y(config.estimate_steps)
        max_y = fit.estimate_max_y(config.estimate_steps)

    reason = ""
    if not fingerprint.is_assigned:
        reason = "unassigned"
    elif fit.count < config.min_samples:
        reason = f"only {fit.count} sample(s), need {config.min_samples}"
    elif min_y is None or max_y is None:
        reason = "singular moment matrix"
    elif not (np.isfinite(min_y) and np.isfinite(max_y)):
        reason = "non-finite signal estimate"
    elif min_y < config.min_signal:
        reason = f"estimated min {min_y:.2f} below {config.min_signal}"
    elif max_y > config.max_signal:
        reason = f"estimated max {max_y:.2f} above {config.max_signal}"
    elif abs(max_y - min_y) < config.min_span:
        reason = f"amplitude {abs(max_y - min_y):.2f} below {config.min_span}"

    return FitQuality(
        emitter_id=fingerprint.emitter_id,
        count=fit.count,
        min_y=min_y,
        max_y=max_y,
        accepted=not reason,
        reason=reason,
    )


def passes_quality_filter(
    fingerprint: EmitterFingerprint, config: Optional[FingerprintConfig] = None
) -> bool:
    """True if the fingerprint is usable for the map."""
    return summarize_fit(fingerprint, config).accepted


def build_position_grid(min_pos: float, max_pos: float) -> PositionGrid:
    """Half-unit position grid over [min_pos, max_pos] (see PositionGrid.from_range)."""
    return PositionGrid.from_range(min_pos, max_pos)


def build_fingerprint_map(
    fingerprints: Iterable[EmitterFingerprint],
    min_pos: float,
    max_pos: float,
    config: Optional[FingerprintConfig] = None,
) -> FingerprintMap:
    """
    Filter emitter fits and resample the usable ones on a position grid.

    Fingerprints that fail the quality filter are released (reset to the
    unassigned state). Each retained fit is evaluated at every grid position
    with predict(x, outside_value), so positions outside a fit's learned
    range get the worst-case signal instead of an extrapolated value.

    Args:
        fingerprints: Calibrated fingerprints. Unassigned slots are skipped.
        min_pos: Smallest surveyed position.
        max_pos: Largest surveyed position.
        config: Thresholds (defaults to FingerprintConfig()).

    Returns:
        FingerprintMap with one lookup row per retained emitter, in input order.

    Raises:
        EmptyFingerprintMapError: If no fingerprint passes the filter.
        ValueError: If the position range is invalid.

    Example:
        >>> result = calibrate_fingerprints(records)
        >>> fmap = build_fingerprint_map(
        ...     result.fingerprints, result.min_pos, result.max_pos
        ... )
    """
    if config is None:
        config = FingerprintConfig()

    grid = build_position_grid(min_pos, max_pos)

    retained: List[EmitterFingerprint] = []
    n_candidates = 0
    for fingerprint in fingerprints:
        if not fingerprint.is_assigned:
            continue
        n_candidates += 1

        quality = summarize_fit(fingerprint, config)
        if quality.accepted:
            logger.info(
                "%s: N: %d min: %.2f max: %.2f",
                quality.emitter_id, quality.count, quality.min_y, quality.max_y,
            )
            retained.append(fingerprint)
        else:
            logger.debug("Rejected %s: %s", quality.emitter_id, quality.reason)
            fingerprint.release()

    if not retained:
        raise EmptyFingerprintMapError(
            f"No usable emitters found: 0 of {n_candidates} fingerprint(s) "
            f"passed the quality filter"
        )

    lookup = np.vstack(
        [fp.fit.predict(grid.positions, config.outside_value) for fp in retained]
    )

    fmap = FingerprintMap(
        grid=grid,
        emitter_ids=tuple(fp.emitter_id for fp in retained),
        lookup=lookup,
        meta={
            "unit": "dBm",
            "degree": config.calibration_degree,
            "outside_value": config.outside_value,
            "min_pos": float(min_pos),
            "max_pos": float(max_pos),
        },
    )
    logger.info("Built %r", fmap)
    return fmap
