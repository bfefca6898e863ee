"""Calibration: learn per-emitter signal profiles from survey records.

During a survey the walker stops at known positions along the corridor and
scans the visible emitters. Every (position, emitter, signal) record is
routed to the fingerprint of its emitter, whose polynomial fit learns the
signal as a function of position.

Author: Navigation Engineer
Date: 2026
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from floorpos.regression import IncrementalPolynomialFit

from .config import FingerprintConfig
from .map_builder import build_fingerprint_map
from .types import EmitterFingerprint, FingerprintMap, ScanRecord

logger = logging.getLogger(__name__)

RecordLike = Union[ScanRecord, tuple]


@dataclass
class CalibrationResult:
    """
    Fingerprints learned from a survey and the surveyed position range.

    Attributes:
        fingerprints: One EmitterFingerprint per distinct emitter, in the
                      order the emitters were first seen.
        min_pos: Smallest surveyed position.
        max_pos: Largest surveyed position.
        n_records: Number of records consumed.
        n_skipped: Number of records ignored because the emitter limit
                   had been reached.
    """

    fingerprints: List[EmitterFingerprint]
    min_pos: float
    max_pos: float
    n_records: int
    n_skipped: int = 0


def _as_record(record: RecordLike) -> ScanRecord:
    if isinstance(record, ScanRecord):
        return record
    position, emitter_id, signal = record
    return ScanRecord(float(position), str(emitter_id), float(signal))


def calibrate_fingerprints(
    records: Iterable[RecordLike], config: Optional[FingerprintConfig] = None
) -> CalibrationResult:
    """
    Learn one polynomial signal profile per emitter.

    Records may be ScanRecord instances or (position, emitter_id, signal)
    tuples. Each new emitter claims the next free fingerprint slot; once
    config.max_emitters slots are taken, records of further emitters are
    skipped and a UserWarning is issued.

    Args:
        records: Survey records.
        config: Calibration configuration (defaults to FingerprintConfig()).

    Returns:
        CalibrationResult with the learned fingerprints and position range.

    Raises:
        ValueError: If no records are given.

    Example:
        >>> result = calibrate_fingerprints([(0.0, "AP1", -40.0), (1.0, "AP1", -45.0)])
        >>> [fp.emitter_id for fp in result.fingerprints]
        ['AP1']
    """
    if config is None:
        config = FingerprintConfig()

    slots: dict = {}
    skipped_emitters = set()
    min_pos = float("inf")
    max_pos = float("-inf")
    n_records = 0
    n_skipped = 0

    for raw in records:
        record = _as_record(raw)
        n_records += 1
        min_pos = min(min_pos, record.position)
        max_pos = max(max_pos, record.position)

        fingerprint = slots.get(record.emitter_id)
        if fingerprint is not None:
            fingerprint.learn(record.position, record.signal)
            continue

        if len(slots) >= config.max_emitters:
            skipped_emitters.add(record.emitter_id)
            n_skipped += 1
            continue

        fingerprint = EmitterFingerprint(
            IncrementalPolynomialFit(degree=config.calibration_degree)
        )
        fingerprint.assign(record.emitter_id, record.position, record.signal)
        slots[record.emitter_id] = fingerprint
        logger.debug("%d: %s", len(slots) - 1, record.emitter_id)

    if n_records == 0:
        raise ValueError("No calibration records given")

    if skipped_emitters:
        warnings.warn(
            f"Emitter limit of {config.max_emitters} reached; ignored "
            f"{len(skipped_emitters)} emitter(s) ({n_skipped} record(s)).",
            UserWarning,
        )

    logger.info(
        "Calibrated %d emitter(s) from %d record(s) over [%.2f, %.2f]",
        len(slots), n_records, min_pos, max_pos,
    )

    return CalibrationResult(
        fingerprints=list(slots.values()),
        min_pos=min_pos,
        max_pos=max_pos,
        n_records=n_records,
        n_skipped=n_skipped,
    )


def calibrate_and_build(
    records: Iterable[RecordLike], config: Optional[FingerprintConfig] = None
) -> FingerprintMap:
    """
    Run calibration and build the fingerprint map in one step.

    Raises:
        ValueError: If no records are given.
        EmptyFingerprintMapError: If no emitter passes the quality filter.
    """
    result = calibrate_fingerprints(records, config)
    return build_fingerprint_map(
        result.fingerprints, result.min_pos, result.max_pos, config=config
    )
