"""
Example: Corridor Positioning with Polynomial Signal Maps

Simulates a WiFi survey along a straight corridor, learns a 5th order
polynomial signal profile per access point, builds the fingerprint map and
locates random query positions by minimum sum of squares.

Pipeline:
    1. Survey: repeated scans at every integer position along the corridor
    2. Calibration: one IncrementalPolynomialFit per access point
    3. Map building: quality filter + half-unit resampling
    4. Positioning: average 4 scans, search the map

Usage:
    python -m corridor_positioning.example_corridor_positioning
    python -m corridor_positioning.example_corridor_positioning --preset noisy --save-dir data/corridor_map

Author: Navigation Engineer
Date: 2026
"""

import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

from floorpos.fingerprinting import (
    EstimateStatus,
    FingerprintConfig,
    FingerprintMap,
    Reading,
    ScanRecord,
    build_fingerprint_map,
    calibrate_fingerprints,
    estimate_position,
    print_map_summary,
    save_fingerprint_map,
    summarize_fit,
)


# ============================================================================
# PRESET CONFIGURATIONS
# ============================================================================

PRESETS = {
    'baseline': {
        'description': '30 m corridor, 6 access points, 2 dB shadowing',
        'corridor_length': 30.0,
        'n_aps': 6,
        'noise_std': 2.0,
        'scans_per_position': 3,
    },
    'noisy': {
        'description': '30 m corridor, 6 access points, 5 dB shadowing',
        'corridor_length': 30.0,
        'n_aps': 6,
        'noise_std': 5.0,
        'scans_per_position': 5,
    },
    'long': {
        'description': '60 m corridor, 10 access points, 3 dB shadowing',
        'corridor_length': 60.0,
        'n_aps': 10,
        'noise_std': 3.0,
        'scans_per_position': 3,
    },
}


# ============================================================================
# SIMULATION
# ============================================================================

def place_access_points(
    corridor_length: float, n_aps: int, rng: np.random.Generator
) -> Dict[str, Tuple[float, float]]:
    """Place access points along the corridor.

    Returns:
        Dict BSSID -> (position along corridor, lateral distance) in meters.
    """
    along = np.linspace(0.0, corridor_length, n_aps)
    lateral = rng.uniform(1.0, 4.0, n_aps)
    return {
        f"24:0a:c4:00:00:{i:02x}": (float(a), float(d))
        for i, (a, d) in enumerate(zip(along, lateral))
    }


def rss_at(
    position: float,
    ap: Tuple[float, float],
    rng: np.random.Generator,
    noise_std: float,
    P0: float = -35.0,
    n: float = 2.2,
) -> float:
    """Log-distance path-loss model: P(d) = P0 - 10*n*log10(d) + X_sigma."""
    d = np.hypot(position - ap[0], ap[1])
    return float(P0 - 10 * n * np.log10(max(d, 0.1)) + rng.normal() * noise_std)


def scan(
    position: float,
    aps: Dict[str, Tuple[float, float]],
    rng: np.random.Generator,
    noise_std: float,
    sensitivity: float = -95.0,
) -> List[Reading]:
    """One WiFi scan: every access point above the receiver sensitivity."""
    readings = []
    for bssid, ap in aps.items():
        rss = rss_at(position, ap, rng, noise_std)
        if rss >= sensitivity:
            readings.append(Reading(bssid, round(rss)))
    return readings


def survey(
    aps: Dict[str, Tuple[float, float]],
    corridor_length: float,
    scans_per_position: int,
    noise_std: float,
    rng: np.random.Generator,
) -> List[ScanRecord]:
    """Walk the corridor and scan at every integer position."""
    records = []
    for position in np.arange(0.0, corridor_length + 0.5, 1.0):
        for _ in range(scans_per_position):
            for reading in scan(position, aps, rng, noise_std):
                records.append(ScanRecord(float(position), reading.emitter_id, reading.signal))
    return records


# ============================================================================
# DEMO
# ============================================================================

def evaluate_queries(
    fmap: FingerprintMap,
    aps: Dict[str, Tuple[float, float]],
    corridor_length: float,
    noise_std: float,
    n_queries: int,
    rng: np.random.Generator,
    scans_per_query: int = 4,
) -> Dict[str, np.ndarray]:
    """Locate random positions and collect errors and outcome counts."""
    true_positions = rng.uniform(0.0, corridor_length, n_queries)
    errors = []
    outcomes = {status: 0 for status in EstimateStatus}

    for true_pos in tqdm(true_positions, desc="Positioning", unit="query"):
        readings = []
        for _ in range(scans_per_query):
            readings.extend(scan(true_pos, aps, rng, noise_std))
        estimate = estimate_position(readings, fmap)
        outcomes[estimate.status] += 1
        if estimate.is_position:
            errors.append(abs(estimate.position - true_pos))

    return {
        'true_positions': true_positions,
        'errors': np.array(errors),
        'outcomes': outcomes,
    }


def run_demo(
    preset: str = 'baseline',
    n_queries: int = 100,
    seed: int = 42,
    save_dir: Optional[str] = None,
    plot: bool = True,
) -> Dict:
    """Run survey, calibration, map building and positioning for a preset."""
    params = PRESETS[preset]
    rng = np.random.default_rng(seed)
    config = FingerprintConfig()

    print(f"\n{'='*70}")
    print(f"Corridor Positioning: {preset} ({params['description']})")
    print(f"{'='*70}")

    aps = place_access_points(params['corridor_length'], params['n_aps'], rng)

    print("\n1. Surveying corridor...")
    records = survey(
        aps, params['corridor_length'], params['scans_per_position'],
        params['noise_std'], rng,
    )
    print(f"   Records: {len(records)}")

    print("\n2. Calibrating polynomial signal profiles...")
    calibration = calibrate_fingerprints(records, config)
    for fingerprint in calibration.fingerprints:
        quality = summarize_fit(fingerprint, config)
        status = "ok" if quality.accepted else f"rejected ({quality.reason})"
        print(f"   {fingerprint.emitter_id}: N={quality.count} {status}")
        print(f"      {fingerprint.fit.get_formula(decimals=4)}")

    print("\n3. Building fingerprint map...")
    fmap = build_fingerprint_map(
        calibration.fingerprints, calibration.min_pos, calibration.max_pos, config
    )
    print_map_summary(fmap)

    if save_dir is not None:
        save_fingerprint_map(fmap, save_dir, format="npz")
        save_fingerprint_map(fmap, save_dir, format="txt")
        print(f"   Saved map to {save_dir}")

    print("\n4. Positioning random queries...")
    results = evaluate_queries(
        fmap, aps, params['corridor_length'], params['noise_std'], n_queries, rng
    )

    errors = results['errors']
    outcomes = results['outcomes']
    print(f"   Positions:    {outcomes[EstimateStatus.POSITION]}")
    print(f"   Out of range: {outcomes[EstimateStatus.OUT_OF_RANGE]}")
    print(f"   Unknown:      {outcomes[EstimateStatus.UNKNOWN]}")
    if len(errors):
        print(f"   Mean error:   {np.mean(errors):.2f} m")
        print(f"   RMSE:         {np.sqrt(np.mean(errors**2)):.2f} m")
        print(f"   P90 error:    {np.percentile(errors, 90):.2f} m")

    if plot:
        plot_map(fmap, Path(save_dir) if save_dir else None)

    return {'fmap': fmap, 'calibration': calibration, **results}


def plot_map(fmap: FingerprintMap, output_dir: Optional[Path] = None) -> None:
    """Plot the lookup table rows of the fingerprint map."""
    fig, ax = plt.subplots(figsize=(10, 5))
    for emitter_id, row in zip(fmap.emitter_ids, fmap.lookup):
        ax.plot(fmap.positions, row, label=emitter_id)
    ax.set_xlabel("Position along corridor [m]")
    ax.set_ylabel("Expected RSS [dBm]")
    ax.set_title("Fingerprint map")
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=8)
    fig.tight_layout()

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_dir / "fingerprint_map.png", dpi=150)
        print(f"   Saved figure to {output_dir / 'fingerprint_map.png'}")
    else:
        plt.show()
    plt.close(fig)


def main():
    parser = argparse.ArgumentParser(
        description="Corridor positioning with polynomial signal maps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Baseline corridor
  python -m corridor_positioning.example_corridor_positioning

  # Noisy survey, save map and figure
  python -m corridor_positioning.example_corridor_positioning --preset noisy --save-dir data/corridor_map
        """
    )
    parser.add_argument(
        "--preset", choices=sorted(PRESETS), default="baseline",
        help="Simulation preset"
    )
    parser.add_argument("--queries", type=int, default=100, help="Number of test queries")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--save-dir", type=str, default=None, help="Directory for map files")
    parser.add_argument("--no-plot", action="store_true", help="Skip the map figure")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    run_demo(
        preset=args.preset,
        n_queries=args.queries,
        seed=args.seed,
        save_dir=args.save_dir,
        plot=not args.no_plot,
    )


if __name__ == "__main__":
    main()
