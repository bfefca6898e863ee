"""Dataset utilities for saving, loading, and validating fingerprint maps.

This module provides I/O functions for FingerprintMap objects in two
formats and validation utilities for data quality checks:
    - 'npz': one .npy file per array plus metadata.json
    - 'txt': a single semicolon separated text file, the layout used by the
      handheld survey device (floor_data.txt)

Author: Navigation Engineer
Date: 2026
"""

import json
from pathlib import Path
from typing import List, Union

import numpy as np

from .types import FingerprintMap, PositionGrid

TXT_FILENAME = "floor_data.txt"


def load_fingerprint_map(
    data_dir: Union[str, Path], format: str = "npz"
) -> FingerprintMap:
    """
    Load a fingerprint map from disk.

    Expected directory structure for NPZ format:
        data_dir/
        ├── positions.npy      # (G,) array
        ├── lookup.npy         # (E, G) array
        └── metadata.json      # {'emitter_ids': [...], 'meta': {...}}

    For TXT format, data_dir contains floor_data.txt:
        G;E
        <G lines, one position each>
        <E lines, one emitter id each>
        <G lines, E values each separated by ';'>

    Args:
        data_dir: Path to directory containing the map files.
        format: File format, 'npz' or 'txt'.

    Returns:
        FingerprintMap loaded from disk.

    Raises:
        FileNotFoundError: If required files are missing.
        ValueError: If the format is unknown or the content is malformed.

    Examples:
        >>> fmap = load_fingerprint_map('data/corridor_map')
        >>> print(fmap)
        FingerprintMap(n_emitters=7, n_positions=60, extent=[0.00, 29.50])
    """
    data_dir = Path(data_dir)

    if format == "npz":
        return _load_npz_map(data_dir)
    elif format == "txt":
        return _load_txt_map(data_dir / TXT_FILENAME)
    else:
        raise ValueError(f"Unsupported format: {format}. Use 'npz' or 'txt'.")


def _load_npz_map(data_dir: Path) -> FingerprintMap:
    """Load map from individual .npy files and metadata.json."""
    positions_file = data_dir / "positions.npy"
    lookup_file = data_dir / "lookup.npy"
    metadata_file = data_dir / "metadata.json"

    for filepath in [positions_file, lookup_file, metadata_file]:
        if not filepath.exists():
            raise FileNotFoundError(f"Required file not found: {filepath}")

    positions = np.load(positions_file)
    lookup = np.load(lookup_file)

    with open(metadata_file, "r", encoding="utf-8") as f:
        metadata = json.load(f)

    if "emitter_ids" not in metadata:
        raise ValueError(f"{metadata_file} has no 'emitter_ids' entry")

    return FingerprintMap(
        grid=PositionGrid(positions),
        emitter_ids=tuple(metadata["emitter_ids"]),
        lookup=lookup,
        meta=metadata.get("meta", {}),
    )


def _load_txt_map(filepath: Path) -> FingerprintMap:
    """Load map from the semicolon separated floor_data.txt layout."""
    if not filepath.exists():
        raise FileNotFoundError(f"Required file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        lines = [line.strip() for line in f if line.strip()]

    if not lines:
        raise ValueError(f"{filepath} is empty")

    try:
        n_positions, n_emitters = (int(v) for v in lines[0].split(";")[:2])
    except ValueError:
        raise ValueError(f"Malformed header in {filepath}: {lines[0]!r}") from None

    expected = 1 + n_positions + n_emitters + n_positions
    if len(lines) != expected:
        raise ValueError(
            f"{filepath} has {len(lines)} non-empty lines, expected {expected} "
            f"for {n_positions} positions and {n_emitters} emitters"
        )

    body = lines[1:]
    positions = np.array([float(line.split(";")[0]) for line in body[:n_positions]])
    emitter_ids = [line.split(";")[0] for line in body[n_positions : n_positions + n_emitters]]

    rows: List[List[float]] = []
    for line in body[n_positions + n_emitters :]:
        values = line.split(";")
        if len(values) != n_emitters:
            raise ValueError(
                f"Lookup line {line!r} has {len(values)} values, expected {n_emitters}"
            )
        rows.append([float(v) for v in values])

    # File rows are grid positions; the map stores one row per emitter
    lookup = np.array(rows).reshape(n_positions, n_emitters).T

    return FingerprintMap(
        grid=PositionGrid(positions),
        emitter_ids=tuple(emitter_ids),
        lookup=lookup,
        meta={"unit": "dBm"},
    )


def save_fingerprint_map(
    fmap: FingerprintMap, data_dir: Union[str, Path], format: str = "npz"
) -> None:
    """
    Save a fingerprint map to disk.

    Creates directory structure (npz):
        data_dir/
        ├── positions.npy
        ├── lookup.npy
        └── metadata.json

    or data_dir/floor_data.txt (txt). Values in the text format are written
    with 6 decimals.

    Args:
        fmap: FingerprintMap to save.
        data_dir: Destination directory (will be created if it doesn't exist).
        format: File format, 'npz' or 'txt'.

    Raises:
        ValueError: If the format is unknown, or a map without emitters or an
                    emitter id containing ";" is written as text.

    Examples:
        >>> save_fingerprint_map(fmap, 'data/corridor_map')
    """
    if format not in ("npz", "txt"):
        raise ValueError(f"Unsupported format: {format}. Use 'npz' or 'txt'.")

    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    if format == "npz":
        _save_npz_map(fmap, data_dir)
    else:
        _save_txt_map(fmap, data_dir / TXT_FILENAME)


def _save_npz_map(fmap: FingerprintMap, data_dir: Path) -> None:
    """Save map as individual .npy files and metadata.json."""
    np.save(data_dir / "positions.npy", fmap.positions)
    np.save(data_dir / "lookup.npy", fmap.lookup)

    metadata = {"emitter_ids": list(fmap.emitter_ids), "meta": fmap.meta}
    with open(data_dir / "metadata.json", "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2)


def _save_txt_map(fmap: FingerprintMap, filepath: Path) -> None:
    """Save map in the semicolon separated floor_data.txt layout."""
    if fmap.is_empty:
        raise ValueError("Cannot write a map without emitters to text format")
    for emitter_id in fmap.emitter_ids:
        if ";" in emitter_id or "\n" in emitter_id:
            raise ValueError(f"Emitter id {emitter_id!r} cannot be written to text format")

    with open(filepath, "w", encoding="utf-8") as f:
        f.write(f"{fmap.n_positions};{fmap.n_emitters}\n")
        for position in fmap.positions:
            f.write(f"{position:.6f}\n")
        for emitter_id in fmap.emitter_ids:
            f.write(f"{emitter_id}\n")
        for x in range(fmap.n_positions):
            f.write(";".join(f"{value:.6f}" for value in fmap.lookup[:, x]) + "\n")


def validate_fingerprint_map(fmap: FingerprintMap) -> dict:
    """
    Perform validation checks on a fingerprint map.

    Validation checks include:
    - Shape consistency (already enforced by __post_init__)
    - At least one emitter and more than two grid positions (the first and
      last position can only ever yield 'out of range')
    - Flat emitter rows that cannot discriminate positions
    - Duplicate grid positions
    - Signal values outside the usual dBm range

    Args:
        fmap: FingerprintMap to validate.

    Returns:
        Dictionary with validation results and warnings:
            {
                'valid': bool,
                'errors': list of error messages,
                'warnings': list of warning messages,
                'stats': dict with map statistics
            }

    Examples:
        >>> result = validate_fingerprint_map(fmap)
        >>> if not result['valid']:
        ...     print("Errors:", result['errors'])
    """
    errors = []
    warnings = []
    stats = {
        "n_emitters": fmap.n_emitters,
        "n_positions": fmap.n_positions,
        "min_position": float(fmap.positions[0]),
        "max_position": float(fmap.positions[-1]),
    }

    if fmap.is_empty:
        errors.append("Map contains no emitters")
    if fmap.n_positions < 3:
        errors.append(
            f"Map has only {fmap.n_positions} grid position(s); "
            f"no interior position can be reported"
        )

    if not fmap.is_empty:
        row_span = np.ptp(fmap.lookup, axis=1)
        flat = [fmap.emitter_ids[i] for i in np.where(row_span < 1e-6)[0]]
        if flat:
            warnings.append(f"Emitters {flat} have a constant signal over the grid")
        stats["signal_min"] = float(np.min(fmap.lookup))
        stats["signal_max"] = float(np.max(fmap.lookup))

        if not np.all(np.isfinite(fmap.lookup)):
            errors.append("Non-finite values detected in lookup table")
        elif np.any(fmap.lookup > 0):
            warnings.append("Some signal values are positive (unusual for dBm)")

    n_duplicates = fmap.n_positions - len(np.unique(fmap.positions))
    if n_duplicates > 0:
        warnings.append(f"Found {n_duplicates} duplicate grid position(s)")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "stats": stats,
    }


def print_map_summary(fmap: FingerprintMap) -> None:
    """
    Print a human-readable summary of the map.

    Examples:
        >>> print_map_summary(fmap)
        Fingerprint Map Summary
        ==================================================
        Emitters:        7
        Grid positions:  60
        ...
    """
    print("Fingerprint Map Summary")
    print("=" * 50)
    print(f"Emitters:        {fmap.n_emitters}")
    print(f"Grid positions:  {fmap.n_positions}")
    print(f"Extent:          [{fmap.positions[0]:.2f}, {fmap.positions[-1]:.2f}]")
    print()

    if not fmap.is_empty:
        print("Signal range per emitter:")
        for emitter_id, row in zip(fmap.emitter_ids, fmap.lookup):
            print(f"  {emitter_id}: [{np.min(row):.2f}, {np.max(row):.2f}]")
        print()

    print("Metadata:")
    for key, value in fmap.meta.items():
        value_str = str(value)
        if len(value_str) > 60:
            value_str = value_str[:57] + "..."
        print(f"  {key}: {value_str}")
