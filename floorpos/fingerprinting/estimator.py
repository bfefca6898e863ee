"""Position search against a fingerprint map.

A batch of live readings (usually several repeated scans) is reduced to one
mean signal per emitter, and the grid position whose expected signals are
closest in the least-squares sense is reported:

    x* = argmin_x Σ_e (z_e - F[e, x])²

where z_e is the mean observed signal of emitter e and F is the lookup table.
Only emitters present in both the batch and the map contribute.

Author: Navigation Engineer
Date: 2026
"""

import logging
from typing import Dict, Iterable, Optional, Union

import numpy as np

from floorpos.regression import IncrementalPolynomialFit

from .types import EstimateStatus, FingerprintMap, PositionEstimate, Reading

logger = logging.getLogger(__name__)

ReadingLike = Union[Reading, tuple]


def average_readings(
    readings: Iterable[ReadingLike], fmap: Optional[FingerprintMap] = None
) -> Dict[str, float]:
    """
    Mean signal per emitter over a batch of readings.

    Averaging reuses a degree-0 IncrementalPolynomialFit per emitter; its
    single coefficient is the mean of the learned values.

    Args:
        readings: Reading instances or (emitter_id, signal) tuples.
        fmap: If given, emitters not in the map are ignored.

    Returns:
        Dict emitter_id -> mean signal, in first-seen order.

    Example:
        >>> average_readings([("AP1", -50.0), ("AP1", -54.0), ("AP2", -70.0)])
        {'AP1': -52.0, 'AP2': -70.0}
    """
    fits: Dict[str, IncrementalPolynomialFit] = {}
    for raw in readings:
        reading = raw if isinstance(raw, Reading) else Reading(str(raw[0]), float(raw[1]))
        if fmap is not None and reading.emitter_id not in fmap:
            continue
        fit = fits.get(reading.emitter_id)
        if fit is None:
            fit = fits[reading.emitter_id] = IncrementalPolynomialFit(
                degree=0, name=reading.emitter_id
            )
        fit.learn(0.0, reading.signal)

    # predict() of a degree-0 fit is the mean for any x
    return {emitter_id: fit.predict(0.0) for emitter_id, fit in fits.items()}


def sum_of_squares(means: Dict[str, float], fmap: FingerprintMap) -> np.ndarray:
    """
    Sum of squared signal differences at every grid position.

    Args:
        means: Mean observed signal per emitter.
        fmap: Fingerprint map.

    Returns:
        Array of shape (G,). Emitters missing from either side are skipped.
    """
    sums = np.zeros(fmap.n_positions)
    for emitter_id, mean in means.items():
        if emitter_id in fmap:
            diff = mean - fmap.row(emitter_id)
            sums += diff * diff
    return sums


def estimate_position(
    readings: Iterable[ReadingLike], fmap: Optional[FingerprintMap]
) -> PositionEstimate:
    """
    Locate a scan batch on the fingerprint map.

    Ties between grid positions go to the first (lowest) index. A best match
    on the first or last grid position is reported as OUT_OF_RANGE, since
    the true position then most likely lies outside the surveyed range.

    Args:
        readings: Reading instances or (emitter_id, signal) tuples; repeated
                  scans of the same emitter are averaged.
        fmap: Fingerprint map, or None if no calibration is loaded.

    Returns:
        PositionEstimate with status POSITION, OUT_OF_RANGE or UNKNOWN.

    Example:
        >>> estimate = estimate_position(
        ...     [("AP1", -52.0), ("AP2", -71.0), ("AP1", -53.0)], fmap
        ... )
        >>> estimate.describe()
        '4.50'
    """
    if fmap is None or fmap.is_empty:
        logger.debug("No fingerprint map available")
        return PositionEstimate(status=EstimateStatus.UNKNOWN)

    means = average_readings(readings, fmap)
    if not means:
        logger.debug("No emitter of the batch is part of the map")
        return PositionEstimate(status=EstimateStatus.UNKNOWN)

    sums = sum_of_squares(means, fmap)
    index = int(np.argmin(sums))
    min_sum = float(sums[index])

    if fmap.grid.is_boundary(index):
        status = EstimateStatus.OUT_OF_RANGE
        position = None
    else:
        status = EstimateStatus.POSITION
        position = float(fmap.positions[index])

    logger.debug(
        "Best match index %d (sum %.2f, %d emitter(s)): %s",
        index, min_sum, len(means), status.value,
    )

    return PositionEstimate(
        status=status,
        position=position,
        index=index,
        min_sum=min_sum,
        n_matched=len(means),
        sums=sums,
    )
