"""Fingerprint-based corridor positioning.

This module turns per-emitter polynomial signal profiles into a signal map
and locates a scan batch on that map by minimum sum of squares.

Main components:
    - calibrate_fingerprints: learn one polynomial profile per emitter
    - build_fingerprint_map: quality filter + resampling on a position grid
    - estimate_position: nearest-fingerprint search over the grid
    - load/save functions: I/O utilities for fingerprint maps

Example usage:
    >>> from floorpos.fingerprinting import (
    ...     calibrate_fingerprints,
    ...     build_fingerprint_map,
    ...     estimate_position,
    ... )
    >>> result = calibrate_fingerprints(records)
    >>> fmap = build_fingerprint_map(
    ...     result.fingerprints, result.min_pos, result.max_pos
    ... )
    >>> estimate = estimate_position(readings, fmap)
    >>> print(estimate.describe())
"""

from .calibration import CalibrationResult, calibrate_and_build, calibrate_fingerprints
from .config import FingerprintConfig
from .dataset import (
    load_fingerprint_map,
    print_map_summary,
    save_fingerprint_map,
    validate_fingerprint_map,
)
from .estimator import average_readings, estimate_position, sum_of_squares
from .map_builder import (
    EmptyFingerprintMapError,
    FitQuality,
    build_fingerprint_map,
    build_position_grid,
    passes_quality_filter,
    summarize_fit,
)
from .types import (
    EmitterFingerprint,
    EstimateStatus,
    FingerprintMap,
    FingerprintStatus,
    PositionEstimate,
    PositionGrid,
    Reading,
    ScanRecord,
)

__all__ = [
    # Core types
    "Reading",
    "ScanRecord",
    "EmitterFingerprint",
    "FingerprintStatus",
    "PositionGrid",
    "FingerprintMap",
    "PositionEstimate",
    "EstimateStatus",
    "FingerprintConfig",
    # Calibration
    "CalibrationResult",
    "calibrate_fingerprints",
    "calibrate_and_build",
    # Map building
    "EmptyFingerprintMapError",
    "FitQuality",
    "summarize_fit",
    "passes_quality_filter",
    "build_position_grid",
    "build_fingerprint_map",
    # Position search
    "average_readings",
    "sum_of_squares",
    "estimate_position",
    # Dataset I/O
    "load_fingerprint_map",
    "save_fingerprint_map",
    "validate_fingerprint_map",
    "print_map_summary",
]
