"""Unit tests for floorpos.fingerprinting.map_builder.

Tests the fit quality filter, the position grid and the resampling of
retained fits into the lookup table.

Author: Navigation Engineer
Date: 2026
"""

import numpy as np
import pytest

from floorpos.fingerprinting import (
    EmitterFingerprint,
    EmptyFingerprintMapError,
    FingerprintConfig,
    build_fingerprint_map,
    build_position_grid,
    passes_quality_filter,
    summarize_fit,
)
from floorpos.regression import IncrementalPolynomialFit


def make_fingerprint(emitter_id, xs, profile, degree=5, repeats=1):
    """Assigned fingerprint that learned profile(x) at every x."""
    fp = EmitterFingerprint(IncrementalPolynomialFit(degree=degree))
    first = True
    for _ in range(repeats):
        for x in xs:
            if first:
                fp.assign(emitter_id, x, profile(x))
                first = False
            else:
                fp.learn(x, profile(x))
    return fp


CORRIDOR = np.arange(0.0, 21.0)


class TestSummarizeFit:
    """Test suite for summarize_fit() and passes_quality_filter()."""

    def test_good_profile_accepted(self):
        """Test a 30 dB linear decay within the signal bounds."""
        fp = make_fingerprint("AP1", CORRIDOR, lambda x: -40.0 - 1.5 * x)

        quality = summarize_fit(fp)

        assert quality.accepted
        assert quality.reason == ""
        assert quality.count == 21
        assert quality.max_y == pytest.approx(-40.0, abs=1e-3)
        assert quality.min_y == pytest.approx(-70.0, abs=1e-3)
        assert quality.span == pytest.approx(30.0, abs=1e-3)
        assert passes_quality_filter(fp)

    def test_flat_profile_rejected_despite_many_samples(self):
        """Test that a 10 dB amplitude fails the 15 dB criterion."""
        fp = make_fingerprint("AP1", CORRIDOR, lambda x: -50.0 - 0.5 * x, repeats=10)

        quality = summarize_fit(fp)

        assert quality.count == 210
        assert not quality.accepted
        assert "amplitude" in quality.reason

    def test_too_few_samples_rejected(self):
        """Test that 5 samples cannot support a 5th order fit."""
        fp = make_fingerprint("AP1", [0.0, 5.0, 10.0, 15.0, 20.0], lambda x: -40.0 - 1.5 * x)

        quality = summarize_fit(fp)

        assert not quality.accepted
        assert "only 5 sample(s)" in quality.reason

    def test_repeated_position_is_singular(self):
        """Test that many samples at one position leave the fit unsolved."""
        fp = make_fingerprint("AP1", [0.0] * 10, lambda x: -40.0)

        quality = summarize_fit(fp)

        assert not quality.accepted
        assert quality.reason == "singular moment matrix"

    def test_repeated_non_integer_position_is_singular(self):
        """Test that repeats of x = 1.1 are rejected, not solved by rounding."""
        fp = make_fingerprint("AP1", [1.1] * 10, lambda x: -40.0)

        quality = summarize_fit(fp)

        assert not fp.fit.is_solved
        assert not quality.accepted
        assert quality.reason == "singular moment matrix"

    def test_too_weak_rejected(self):
        """Test that an estimated minimum below -95 dBm is rejected."""
        fp = make_fingerprint("AP1", CORRIDOR, lambda x: -80.0 - 1.0 * x)

        quality = summarize_fit(fp)

        assert not quality.accepted
        assert "below -95" in quality.reason

    def test_too_strong_rejected(self):
        """Test that an estimated maximum above -25 dBm is rejected."""
        fp = make_fingerprint("AP1", CORRIDOR, lambda x: -20.0 - 1.0 * x)

        quality = summarize_fit(fp)

        assert not quality.accepted
        assert "above -25" in quality.reason

    def test_custom_thresholds(self):
        """Test that a relaxed config accepts the flat profile."""
        fp = make_fingerprint("AP1", CORRIDOR, lambda x: -50.0 - 0.5 * x)
        config = FingerprintConfig(min_span=5.0)

        assert summarize_fit(fp, config).accepted

    def test_unassigned_rejected(self):
        fp = EmitterFingerprint(IncrementalPolynomialFit(degree=5))

        assert summarize_fit(fp).reason == "unassigned"


class TestBuildPositionGrid:
    """Test suite for build_position_grid()."""

    def test_two_points_per_unit(self):
        grid = build_position_grid(0.0, 20.0)

        assert len(grid) == 40
        assert grid.positions[1] - grid.positions[0] == pytest.approx(0.5)
        assert grid.positions[-1] == pytest.approx(19.5)

    def test_inverted_range_error(self):
        with pytest.raises(ValueError):
            build_position_grid(3.0, 1.0)


class TestBuildFingerprintMap:
    """Test suite for build_fingerprint_map()."""

    def test_rows_follow_input_order(self):
        """Test that retained emitters keep their calibration order."""
        fingerprints = [
            make_fingerprint("AP2", CORRIDOR, lambda x: -75.0 + 1.5 * x),
            make_fingerprint("AP1", CORRIDOR, lambda x: -40.0 - 1.5 * x),
        ]

        fmap = build_fingerprint_map(fingerprints, 0.0, 20.0)

        assert fmap.emitter_ids == ("AP2", "AP1")
        assert fmap.lookup.shape == (2, 40)
        np.testing.assert_allclose(
            fmap.row("AP1"), -40.0 - 1.5 * fmap.positions, atol=1e-3
        )

    def test_rejected_fits_are_released(self):
        """Test that failing fingerprints leave the map and are reset."""
        good = make_fingerprint("AP1", CORRIDOR, lambda x: -40.0 - 1.5 * x)
        flat = make_fingerprint("AP2", CORRIDOR, lambda x: -50.0 - 0.5 * x)

        fmap = build_fingerprint_map([good, flat], 0.0, 20.0)

        assert fmap.emitter_ids == ("AP1",)
        assert "AP2" not in fmap
        assert not flat.is_assigned
        assert flat.fit.count == 0
        assert good.is_assigned

    def test_outside_learned_range_uses_worst_signal(self):
        """Test the -95 dBm clamp outside a fit's learned range."""
        fp = make_fingerprint("AP1", np.arange(5.0, 16.0), lambda x: -40.0 - 2.0 * (x - 5.0))

        fmap = build_fingerprint_map([fp], 0.0, 20.0)
        row = fmap.row("AP1")
        positions = fmap.positions

        inside = (positions >= 5.0) & (positions <= 15.0)
        np.testing.assert_array_equal(row[~inside], -95.0)
        np.testing.assert_allclose(
            row[inside], -40.0 - 2.0 * (positions[inside] - 5.0), atol=1e-3
        )

    def test_unassigned_slots_skipped(self):
        good = make_fingerprint("AP1", CORRIDOR, lambda x: -40.0 - 1.5 * x)
        empty = EmitterFingerprint(IncrementalPolynomialFit(degree=5))

        fmap = build_fingerprint_map([empty, good], 0.0, 20.0)

        assert fmap.emitter_ids == ("AP1",)

    def test_meta(self):
        fp = make_fingerprint("AP1", CORRIDOR, lambda x: -40.0 - 1.5 * x)

        fmap = build_fingerprint_map([fp], 0.0, 20.0)

        assert fmap.meta["unit"] == "dBm"
        assert fmap.meta["degree"] == 5
        assert fmap.meta["outside_value"] == -95.0
        assert fmap.meta["min_pos"] == 0.0
        assert fmap.meta["max_pos"] == 20.0

    def test_no_usable_emitter_error(self):
        """Test that an all-rejected calibration raises."""
        flat = make_fingerprint("AP1", CORRIDOR, lambda x: -50.0 - 0.5 * x)
        sparse = make_fingerprint("AP2", [0.0, 10.0, 20.0], lambda x: -40.0 - 1.5 * x)

        with pytest.raises(EmptyFingerprintMapError, match="0 of 2"):
            build_fingerprint_map([flat, sparse], 0.0, 20.0)

    def test_empty_error_is_value_error(self):
        with pytest.raises(ValueError):
            build_fingerprint_map([], 0.0, 20.0)
