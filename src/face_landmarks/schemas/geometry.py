"""Per-item letterbox geometry."""

from __future__ import annotations

from pydantic import BaseModel, Field

from face_landmarks.schemas.landmarks import Point


class ItemGeometry(BaseModel, frozen=True):
    """How one input item was placed inside the canonical frame.

    ``scale`` is the letterbox factor: the uniform scale that fits a
    padded item's longer side into the canonical frame, and exactly 1 when
    the item already has the frame's aspect ratio.  Such items are resized
    directly by ``resize`` instead (1 for letterboxed items).  ``shift_x``
    and ``shift_y`` are the letterbox offsets of the item's top-left corner,
    in canonical pixels.  A canonical point ``p`` maps back to the original
    image as ``(p - shift) / (scale * resize)``.
    """

    original_width: int = Field(gt=0)
    original_height: int = Field(gt=0)
    scale: float = Field(gt=0)
    resize: float = Field(default=1.0, gt=0)
    shift_x: float = Field(default=0.0, ge=0)
    shift_y: float = Field(default=0.0, ge=0)

    @property
    def shift(self) -> Point:
        return Point(x=self.shift_x, y=self.shift_y)

    def to_original(self, x: float, y: float) -> Point:
        """Map a canonical-frame pixel coordinate to original-image pixels."""
        factor = self.scale * self.resize
        return Point(x=(x - self.shift_x) / factor, y=(y - self.shift_y) / factor)
