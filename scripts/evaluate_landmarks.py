#!/usr/bin/env python3
"""Evaluate predicted landmarks against reference landmark files.

Pairs every ``<stem>.json`` written by ``face-landmarks-detect`` with the
reference file of the same stem, and prints per-image mean / max point error
in pixels plus the fraction of points within a tolerance.

Usage::

    python scripts/evaluate_landmarks.py \\
        --predictions landmarks/ \\
        --references data/reference_landmarks/ \\
        --tolerance 3
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from face_landmarks.io import load_landmark_positions  # noqa: E402
from face_landmarks.schemas import Point  # noqa: E402
from face_landmarks.utils.files import get_files  # noqa: E402


def point_errors(predicted: list[Point], reference: list[Point]) -> list[float]:
    """Euclidean distance per landmark index."""
    if len(predicted) != len(reference):
        raise ValueError(
            f"landmark count mismatch: {len(predicted)} predicted, "
            f"{len(reference)} reference"
        )
    return [p.distance_to(r) for p, r in zip(predicted, reference)]


def evaluate_pairs(
    predictions: list[Path], references: Path, tolerance: float
) -> tuple[list[tuple[str, float, float, float]], list[float]]:
    """Per-image ``(stem, mean, max, within)`` rows plus every point error.

    Pairs without a reference file or without any points are skipped.
    """
    rows: list[tuple[str, float, float, float]] = []
    all_errors: list[float] = []
    for pred_path in tqdm(predictions, desc="Evaluating"):
        ref_path = references / pred_path.name
        if not ref_path.exists():
            logger.warning(f"No reference for {pred_path.name}, skipping")
            continue
        errors = point_errors(
            load_landmark_positions(pred_path), load_landmark_positions(ref_path)
        )
        if not errors:
            logger.warning(f"No landmarks in {pred_path.name}, skipping")
            continue
        within = sum(e <= tolerance for e in errors) / len(errors)
        rows.append((pred_path.stem, sum(errors) / len(errors), max(errors), within))
        all_errors.extend(errors)
    return rows, all_errors


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.split("\n")[0])
    parser.add_argument("--predictions", type=Path, required=True)
    parser.add_argument("--references", type=Path, required=True)
    parser.add_argument(
        "--tolerance",
        type=float,
        default=3.0,
        help="Max pixel distance for a point to count as correct",
    )
    args = parser.parse_args()

    predictions = get_files(args.predictions, (".json",))
    if not predictions:
        logger.error(f"No prediction files found under {args.predictions}")
        sys.exit(1)

    rows, all_errors = evaluate_pairs(predictions, args.references, args.tolerance)

    if not rows:
        logger.error("No prediction/reference pairs found")
        sys.exit(1)

    table = Table(title=f"Landmark error (tolerance {args.tolerance:g}px)")
    table.add_column("Image")
    table.add_column("Mean px", justify="right")
    table.add_column("Max px", justify="right")
    table.add_column("Within tol", justify="right")
    for stem, mean_err, max_err, within in rows:
        style = "green" if max_err <= args.tolerance else "red"
        table.add_row(
            stem, f"{mean_err:.2f}", f"{max_err:.2f}", f"{within:.1%}", style=style
        )
    table.add_section()
    overall_within = sum(e <= args.tolerance for e in all_errors) / len(all_errors)
    table.add_row(
        "overall",
        f"{sum(all_errors) / len(all_errors):.2f}",
        f"{max(all_errors):.2f}",
        f"{overall_within:.1%}",
    )
    Console().print(table)


if __name__ == "__main__":
    main()
