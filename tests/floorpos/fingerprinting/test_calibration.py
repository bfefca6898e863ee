"""Unit tests for floorpos.fingerprinting.calibration.

Tests grouping of survey records by emitter, the emitter limit and the
one-step calibrate_and_build pipeline on noise-free signal profiles.

Author: Navigation Engineer
Date: 2026
"""

import warnings

import numpy as np
import pytest

from floorpos.fingerprinting import (
    EstimateStatus,
    FingerprintConfig,
    ScanRecord,
    calibrate_and_build,
    calibrate_fingerprints,
    estimate_position,
)


PROFILES = {
    "AP1": lambda x: -40.0 - 1.5 * x,
    "AP2": lambda x: -75.0 + 1.5 * x,
    "AP3": lambda x: -30.0 - 0.2 * (x - 10.0) ** 2,
}


def survey_records(positions=np.arange(0.0, 21.0)):
    """Noise-free survey of the three profiles."""
    return [
        ScanRecord(float(x), emitter_id, profile(x))
        for x in positions
        for emitter_id, profile in PROFILES.items()
    ]


def readings_at(x):
    return [(emitter_id, profile(x)) for emitter_id, profile in PROFILES.items()]


class TestCalibrateFingerprints:
    """Test suite for calibrate_fingerprints()."""

    def test_groups_records_by_emitter(self):
        """Test that each emitter gets one fingerprint in first-seen order."""
        records = [(0.0, "B", -70.0), (0.0, "A", -40.0), (1.0, "B", -72.0)]

        result = calibrate_fingerprints(records)

        assert [fp.emitter_id for fp in result.fingerprints] == ["B", "A"]
        assert [fp.fit.count for fp in result.fingerprints] == [2, 1]
        assert all(fp.is_assigned for fp in result.fingerprints)

    def test_position_range_and_counts(self):
        """Test that the surveyed range spans all records."""
        records = [(3.0, "A", -40.0), (-1.5, "B", -60.0), (7.25, "A", -50.0)]

        result = calibrate_fingerprints(records)

        assert result.min_pos == -1.5
        assert result.max_pos == 7.25
        assert result.n_records == 3
        assert result.n_skipped == 0

    def test_fits_use_configured_degree(self):
        """Test that the calibration degree comes from the config."""
        config = FingerprintConfig(calibration_degree=2, min_samples=3)

        result = calibrate_fingerprints([(0.0, "A", -40.0)], config)

        assert result.fingerprints[0].fit.degree == 2

    def test_default_degree_is_five(self):
        result = calibrate_fingerprints([(0.0, "A", -40.0)])

        assert result.fingerprints[0].fit.degree == 5

    def test_accepts_scan_records(self):
        """Test ScanRecord input and generators."""
        result = calibrate_fingerprints(r for r in survey_records())

        assert [fp.emitter_id for fp in result.fingerprints] == ["AP1", "AP2", "AP3"]
        assert result.fingerprints[0].fit.count == 21

    def test_empty_records_error(self):
        """Test that an empty survey raises ValueError."""
        with pytest.raises(ValueError, match="No calibration records"):
            calibrate_fingerprints([])

    def test_emitter_limit(self):
        """Test that emitters beyond max_emitters are skipped with a warning."""
        config = FingerprintConfig(max_emitters=2)
        records = [
            (0.0, "A", -40.0),
            (0.0, "B", -50.0),
            (0.0, "C", -60.0),
            (1.0, "C", -61.0),
            (1.0, "A", -41.0),
        ]

        with pytest.warns(UserWarning, match="Emitter limit of 2"):
            result = calibrate_fingerprints(records, config)

        assert [fp.emitter_id for fp in result.fingerprints] == ["A", "B"]
        assert result.fingerprints[0].fit.count == 2
        assert result.n_skipped == 2
        assert result.n_records == 5
        assert result.max_pos == 1.0

    def test_default_limit_is_forty(self):
        """Test that the 41st distinct emitter is ignored by default."""
        records = [(0.0, f"AP{i}", -50.0) for i in range(41)]

        with pytest.warns(UserWarning, match="Emitter limit of 40"):
            result = calibrate_fingerprints(records)

        assert len(result.fingerprints) == 40
        assert "AP40" not in [fp.emitter_id for fp in result.fingerprints]

    def test_no_warning_within_limit(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            calibrate_fingerprints([(0.0, f"AP{i}", -50.0) for i in range(40)])


class TestCalibrateAndBuild:
    """End-to-end calibration, map building and position search."""

    def test_map_contains_all_profiles(self):
        fmap = calibrate_and_build(survey_records())

        assert fmap.emitter_ids == ("AP1", "AP2", "AP3")
        assert fmap.n_positions == 40
        assert fmap.positions[0] == 0.0
        assert fmap.positions[-1] == pytest.approx(19.5)

    def test_lookup_reproduces_profiles(self):
        """Test that the degree 5 fits recover the survey profiles."""
        fmap = calibrate_and_build(survey_records())

        for emitter_id, profile in PROFILES.items():
            np.testing.assert_allclose(
                fmap.row(emitter_id), profile(fmap.positions), atol=1e-3
            )

    def test_locates_interior_position(self):
        """Test that an exact scan is located on its grid position."""
        fmap = calibrate_and_build(survey_records())

        estimate = estimate_position(readings_at(7.0), fmap)

        assert estimate.status is EstimateStatus.POSITION
        assert estimate.position == pytest.approx(7.0)
        assert estimate.n_matched == 3
        assert estimate.min_sum == pytest.approx(0.0, abs=1e-4)

    def test_locates_half_unit_position(self):
        fmap = calibrate_and_build(survey_records())

        estimate = estimate_position(readings_at(12.5), fmap)

        assert estimate.describe() == "12.50"

    @pytest.mark.parametrize("x", [0.0, 20.0])
    def test_survey_ends_are_out_of_range(self, x):
        """Test that scans at either end of the corridor are not located."""
        fmap = calibrate_and_build(survey_records())

        estimate = estimate_position(readings_at(x), fmap)

        assert estimate.status is EstimateStatus.OUT_OF_RANGE
        assert estimate.position is None
