"""Configuration for signal-map calibration and position search.

Author: Navigation Engineer
Date: 2026
"""

import warnings
from dataclasses import dataclass


@dataclass(frozen=True)
class FingerprintConfig:
    """Thresholds and degrees used while calibrating a fingerprint map.

    The defaults are the values the corridor survey was tuned with: a 5th
    order polynomial per access point, which needs at least 6 samples, and
    a usable signal profile between -95 dBm and -25 dBm that varies by at
    least 15 dB along the corridor.

    Attributes:
        calibration_degree: Polynomial degree of each emitter fit.
        min_samples: Minimum number of learned samples for a usable fit.
        min_signal: Lowest acceptable estimated signal (dBm).
        max_signal: Highest acceptable estimated signal (dBm).
        min_span: Minimum estimated max - min signal over the range (dB).
        outside_value: Signal assumed outside a fit's learned range (dBm).
        estimate_steps: Sampling steps for estimate_min_y / estimate_max_y.
        max_emitters: Maximum number of distinct emitters tracked during
                      calibration; further emitters are ignored.

    Example:
        >>> config = FingerprintConfig(min_span=10.0)
        >>> config.calibration_degree
        5
    """

    calibration_degree: int = 5
    min_samples: int = 6
    min_signal: float = -95.0
    max_signal: float = -25.0
    min_span: float = 15.0
    outside_value: float = -95.0
    estimate_steps: int = 100
    max_emitters: int = 40

    def __post_init__(self) -> None:
        """Validate the configuration values."""
        if self.calibration_degree < 0:
            raise ValueError(
                f"calibration_degree must be >= 0, got {self.calibration_degree}"
            )
        if self.min_samples < 1:
            raise ValueError(f"min_samples must be >= 1, got {self.min_samples}")
        if self.min_signal >= self.max_signal:
            raise ValueError(
                f"min_signal ({self.min_signal}) must be below "
                f"max_signal ({self.max_signal})"
            )
        if self.min_span < 0:
            raise ValueError(f"min_span must be >= 0, got {self.min_span}")
        if self.estimate_steps < 1:
            raise ValueError(f"estimate_steps must be >= 1, got {self.estimate_steps}")
        if self.max_emitters < 1:
            raise ValueError(f"max_emitters must be >= 1, got {self.max_emitters}")

        if self.calibration_degree > 7:
            warnings.warn(
                f"calibration_degree={self.calibration_degree} exceeds 7; "
                f"power sums lose precision in double arithmetic at this degree.",
                UserWarning,
            )
        if self.min_samples < self.calibration_degree + 1:
            warnings.warn(
                f"min_samples={self.min_samples} is below calibration_degree + 1 "
                f"= {self.calibration_degree + 1}; such fits are always singular.",
                UserWarning,
            )
