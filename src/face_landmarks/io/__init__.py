"""Landmark annotation I/O."""

from face_landmarks.io.landmarks import (
    LandmarkWriter,
    load_landmark_positions,
    read_annotation,
)

__all__ = ["LandmarkWriter", "load_landmark_positions", "read_annotation"]
