"""Dense-block landmark networks built from depthwise-separable convolutions.

Each dense block downsamples once, then every following convolution sees the
ReLU of the sum of all previous outputs in the block.
"""

from __future__ import annotations

from typing import Any

import torch
from torch import nn

from face_landmarks.models.base import BaseLandmarkNet
from face_landmarks.utils.hydra import register


class SeparableConv2d(nn.Module):
    """3x3 depthwise conv followed by a 1x1 pointwise conv."""

    def __init__(self, in_channels: int, out_channels: int, stride: int = 1) -> None:
        super().__init__()
        self.depthwise = nn.Conv2d(
            in_channels,
            in_channels,
            kernel_size=3,
            stride=stride,
            padding=1,
            groups=in_channels,
            bias=False,
        )
        self.pointwise = nn.Conv2d(in_channels, out_channels, kernel_size=1)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.pointwise(self.depthwise(x))  # type: ignore[no-any-return]


class DenseBlock(nn.Module):
    """Dense block with ``num_convs`` convolutions and a stride-2 entry.

    Args:
        in_channels: Input channels.
        out_channels: Channels of every convolution in the block.
        num_convs: Total convolutions including the entry (3 or 4 in practice).
        is_first_layer: Use a regular conv for the entry, since depthwise
            convs over 3 RGB channels learn little.
    """

    def __init__(
        self,
        in_channels: int,
        out_channels: int,
        num_convs: int = 4,
        is_first_layer: bool = False,
    ) -> None:
        super().__init__()
        if num_convs < 2:
            raise ValueError(f"num_convs must be >= 2, got {num_convs}")
        if is_first_layer:
            self.entry: nn.Module = nn.Conv2d(
                in_channels, out_channels, kernel_size=3, stride=2, padding=1
            )
        else:
            self.entry = SeparableConv2d(in_channels, out_channels, stride=2)
        self.convs = nn.ModuleList(
            SeparableConv2d(out_channels, out_channels) for _ in range(num_convs - 1)
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        outputs = [torch.relu(self.entry(x))]
        for conv in self.convs:
            outputs.append(conv(torch.relu(torch.stack(outputs).sum(dim=0))))
        return torch.relu(torch.stack(outputs).sum(dim=0))


@register(group="model", name="landmark68")
class LandmarkNet68(BaseLandmarkNet):
    """Four dense blocks (32, 64, 128, 256 channels), 16x downsampling.

    A 112 input ends at 7x7 before global average pooling.
    """

    def __init__(self, input_size: int = 112, num_landmarks: int = 68, **kwargs: Any) -> None:
        super().__init__(input_size=input_size, num_landmarks=num_landmarks, **kwargs)
        self.features = nn.Sequential(
            DenseBlock(3, 32, num_convs=4, is_first_layer=True),
            DenseBlock(32, 64, num_convs=4),
            DenseBlock(64, 128, num_convs=4),
            DenseBlock(128, 256, num_convs=4),
            nn.AdaptiveAvgPool2d(1),
            nn.Flatten(),
        )
        self.head = nn.Linear(256, self.output_size)

    def extract_features(self, images: torch.Tensor) -> torch.Tensor:
        return self.features(images)  # type: ignore[no-any-return]


@register(group="model", name="landmark68_tiny")
class TinyLandmarkNet68(BaseLandmarkNet):
    """Three dense blocks of three convs (32, 64, 128 channels).

    Roughly a fifth of the parameters of :class:`LandmarkNet68`.
    """

    def __init__(self, input_size: int = 112, num_landmarks: int = 68, **kwargs: Any) -> None:
        super().__init__(input_size=input_size, num_landmarks=num_landmarks, **kwargs)
        self.features = nn.Sequential(
            DenseBlock(3, 32, num_convs=3, is_first_layer=True),
            DenseBlock(32, 64, num_convs=3),
            DenseBlock(64, 128, num_convs=3),
            nn.AdaptiveAvgPool2d(1),
            nn.Flatten(),
        )
        self.head = nn.Linear(128, self.output_size)

    def extract_features(self, images: torch.Tensor) -> torch.Tensor:
        return self.features(images)  # type: ignore[no-any-return]
