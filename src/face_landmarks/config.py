"""Pydantic frozen configuration models for face_landmarks."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class LandmarkInferenceConfig(BaseModel, frozen=True):
    """Configuration for the canonicalize -> batch -> forward -> remap pipeline.

    All fields are validated at construction time. Frozen, no mutation after creation.

    ``padding`` picks where an item sits inside its square letterbox frame:
    ``"center"`` splits the padding evenly (the extra pixel of an odd split
    goes right/bottom), ``"top_left"`` anchors the content at the origin.
    """

    input_size: int = Field(default=112, gt=0)
    num_landmarks: int = Field(default=68, gt=0)
    padding: Literal["center", "top_left"] = "center"
    pad_value: float = Field(default=0.0, ge=0.0, le=255.0)
    device: str = "cpu"

    @model_validator(mode="after")
    def _normalize_device(self) -> "LandmarkInferenceConfig":
        """Accept ``"CUDA"``/``" cpu "`` style spellings from CLI overrides."""
        normalized = self.device.strip().lower()
        if normalized != self.device:
            # Use object.__setattr__ because model is frozen
            object.__setattr__(self, "device", normalized)
        return self

    @property
    def output_size(self) -> int:
        """Flattened network output width (x, y per landmark)."""
        return 2 * self.num_landmarks
