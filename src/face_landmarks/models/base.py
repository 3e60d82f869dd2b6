"""Base module for all 68-point landmark networks."""

from __future__ import annotations

import torch
from torch import nn

# Mean RGB of the face crops the dense landmark nets were trained on.
FACE_MEAN_RGB = (122.782, 117.001, 104.298)


class BaseLandmarkNet(nn.Module):
    """Shared input/output contract for landmark regressors.

    Input: float tensor ``(B, 3, input_size, input_size)`` with raw 0-255
    pixel values.  Output: ``(B, 2 * num_landmarks)`` interleaved
    ``x0, y0, x1, y1, ...`` in ``[0, 1]`` relative to the input frame.

    Subclasses build ``self.head`` (``nn.Linear`` to ``2 * num_landmarks``)
    and implement :meth:`extract_features` returning ``(B, F)``.
    """

    # Declare buffer types explicitly so mypy knows they are always Tensors.
    mean_rgb: torch.Tensor
    std_rgb: torch.Tensor
    head: nn.Module

    def __init__(
        self,
        input_size: int = 112,
        num_landmarks: int = 68,
        mean_rgb: tuple[float, float, float] = FACE_MEAN_RGB,
        std_rgb: tuple[float, float, float] = (255.0, 255.0, 255.0),
    ) -> None:
        super().__init__()
        self.input_size = input_size
        self.num_landmarks = num_landmarks
        self.register_buffer("mean_rgb", torch.tensor(mean_rgb).view(1, 3, 1, 1))
        self.register_buffer("std_rgb", torch.tensor(std_rgb).view(1, 3, 1, 1))

    @property
    def output_size(self) -> int:
        return 2 * self.num_landmarks

    def normalize(self, images: torch.Tensor) -> torch.Tensor:
        return (images - self.mean_rgb) / self.std_rgb

    def extract_features(self, images: torch.Tensor) -> torch.Tensor:
        raise NotImplementedError

    def forward(self, images: torch.Tensor) -> torch.Tensor:
        features = self.extract_features(self.normalize(images))
        return torch.sigmoid(self.head(features))
