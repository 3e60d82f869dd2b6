"""Landmark annotation writer and reference reader using orjson."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson

from face_landmarks.schemas.annotation import LandmarkAnnotation
from face_landmarks.schemas.landmarks import Point


class LandmarkWriter:
    """Write one JSON file per image annotation using orjson.

    Output files are named ``{image_stem}.json`` inside ``output_dir``.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write(self, annotation: LandmarkAnnotation) -> Path:
        """Write a single annotation to disk. Returns the output path."""
        stem = Path(annotation.filename).stem
        out_path = self.output_dir / f"{stem}.json"
        data = orjson.dumps(annotation.model_dump(mode="json"), option=orjson.OPT_INDENT_2)
        out_path.write_bytes(data)
        return out_path


def read_annotation(path: Path) -> LandmarkAnnotation:
    return LandmarkAnnotation.model_validate(orjson.loads(path.read_bytes()))


def load_landmark_positions(path: Path) -> list[Point]:
    """Read landmark positions from a JSON file.

    Accepts either a bare ``[{"x": ..., "y": ...}, ...]`` list (reference
    data) or an annotation written by :class:`LandmarkWriter`.
    """
    data: Any = orjson.loads(path.read_bytes())
    if isinstance(data, dict):
        data = data["landmarks"]["positions"]
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of points, got {type(data).__name__}")
    return [Point.model_validate(p) for p in data]
