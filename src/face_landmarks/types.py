"""Type aliases, TypedDicts and input variants for face_landmarks inter-module contracts."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal, TypedDict, Union

import numpy as np
import torch
from PIL import Image
from pydantic import BaseModel, field_validator

RawItem = Union[Image.Image, torch.Tensor, np.ndarray]
RawInput = Union[RawItem, Sequence[RawItem]]


class MemoryInfo(TypedDict):
    """Snapshot of live tensor handles.

    num_tensors: Count of undisposed handles.
    num_bytes: Total storage size of the tensors they own.
    """

    num_tensors: int
    num_bytes: int


class ImageItem(BaseModel, frozen=True, arbitrary_types_allowed=True):
    """A decoded image."""

    kind: Literal["image"] = "image"
    image: Image.Image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


class Tensor3DItem(BaseModel, frozen=True, arbitrary_types_allowed=True):
    """A single image as a channel-last ``(H, W, C)`` tensor."""

    kind: Literal["tensor3d"] = "tensor3d"
    tensor: torch.Tensor

    @field_validator("tensor")
    @classmethod
    def _rank_3(cls, v: torch.Tensor) -> torch.Tensor:
        if v.dim() != 3:
            raise ValueError(f"expected a rank-3 tensor, got rank {v.dim()}")
        return v

    @property
    def width(self) -> int:
        return int(self.tensor.shape[1])

    @property
    def height(self) -> int:
        return int(self.tensor.shape[0])


class Tensor4DItem(BaseModel, frozen=True, arbitrary_types_allowed=True):
    """A single image as a ``(1, H, W, C)`` tensor."""

    kind: Literal["tensor4d"] = "tensor4d"
    tensor: torch.Tensor

    @field_validator("tensor")
    @classmethod
    def _rank_4_batch_1(cls, v: torch.Tensor) -> torch.Tensor:
        if v.dim() != 4 or v.shape[0] != 1:
            raise ValueError(
                f"expected a (1, H, W, C) tensor, got shape {tuple(v.shape)}"
            )
        return v

    @property
    def width(self) -> int:
        return int(self.tensor.shape[2])

    @property
    def height(self) -> int:
        return int(self.tensor.shape[1])


InputItem = Union[ImageItem, Tensor3DItem, Tensor4DItem]
