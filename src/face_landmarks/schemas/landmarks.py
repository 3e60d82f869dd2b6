"""Landmark point and landmark-set schemas.

Landmark positions are in original-image pixel space.  ``shift`` records the
letterbox offset applied while the image was canonicalized; it is kept for
diagnostics and does not move the positions.
"""

from __future__ import annotations

import math
from typing import Self

from pydantic import BaseModel, Field, field_validator


class Point(BaseModel, frozen=True):
    """A 2-D point in pixel coordinates."""

    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


class LandmarkSet(BaseModel, frozen=True):
    """Ordered landmark positions for one image.

    Args:
        positions: Landmark coordinates in original-image pixels.
        image_width: Width of the image the landmarks belong to.
        image_height: Height of the image the landmarks belong to.
        shift: Letterbox offset applied during canonicalization.
    """

    positions: tuple[Point, ...]
    image_width: int = Field(gt=0)
    image_height: int = Field(gt=0)
    shift: Point = Point(x=0.0, y=0.0)

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def relative_positions(self) -> tuple[Point, ...]:
        """Positions divided by image size, i.e. in ``[0, 1]`` for in-image points."""
        return tuple(
            Point(x=p.x / self.image_width, y=p.y / self.image_height)
            for p in self.positions
        )

    def translate(self, dx: float, dy: float) -> Self:
        """Move every position by ``(dx, dy)``, e.g. from a crop into its source image."""
        return type(self)(
            positions=tuple(Point(x=p.x + dx, y=p.y + dy) for p in self.positions),
            image_width=self.image_width,
            image_height=self.image_height,
            shift=self.shift,
        )

    def for_size(self, width: int, height: int) -> Self:
        """Rescale positions to an image of a different size."""
        sx = width / self.image_width
        sy = height / self.image_height
        return type(self)(
            positions=tuple(Point(x=p.x * sx, y=p.y * sy) for p in self.positions),
            image_width=width,
            image_height=height,
            shift=self.shift,
        )


class FaceLandmarks68(LandmarkSet, frozen=True):
    """The 68-point iBUG/300-W facial landmark layout."""

    @field_validator("positions")
    @classmethod
    def _exactly_68(cls, v: tuple[Point, ...]) -> tuple[Point, ...]:
        if len(v) != 68:
            raise ValueError(f"FaceLandmarks68 requires 68 positions, got {len(v)}")
        return v

    @property
    def jaw_outline(self) -> tuple[Point, ...]:
        return self.positions[0:17]

    @property
    def left_eyebrow(self) -> tuple[Point, ...]:
        return self.positions[17:22]

    @property
    def right_eyebrow(self) -> tuple[Point, ...]:
        return self.positions[22:27]

    @property
    def nose(self) -> tuple[Point, ...]:
        return self.positions[27:36]

    @property
    def left_eye(self) -> tuple[Point, ...]:
        return self.positions[36:42]

    @property
    def right_eye(self) -> tuple[Point, ...]:
        return self.positions[42:48]

    @property
    def mouth(self) -> tuple[Point, ...]:
        return self.positions[48:68]
