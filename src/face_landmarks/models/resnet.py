"""ResNet18 landmark regressor."""

from __future__ import annotations

from typing import Any

import torch
import torchvision.models as tv_models
from torch import nn

from face_landmarks.models.base import BaseLandmarkNet
from face_landmarks.utils.hydra import register

_IMAGENET_MEAN_RGB = (0.485 * 255, 0.456 * 255, 0.406 * 255)
_IMAGENET_STD_RGB = (0.229 * 255, 0.224 * 255, 0.225 * 255)


@register(group="model", name="resnet18")
class ResNet18LandmarkNet(BaseLandmarkNet):
    """ResNet18 backbone with ImageNet pretrained weights.

    fc replaced with Identity; a Linear(512, 2 * num_landmarks) head regresses
    the landmarks.  Inputs are normalized with ImageNet statistics.
    Pass pretrained=False in tests to skip the ~44MB weight download.
    """

    def __init__(
        self,
        input_size: int = 112,
        num_landmarks: int = 68,
        pretrained: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            input_size=input_size,
            num_landmarks=num_landmarks,
            mean_rgb=_IMAGENET_MEAN_RGB,
            std_rgb=_IMAGENET_STD_RGB,
            **kwargs,
        )
        weights = tv_models.ResNet18_Weights.DEFAULT if pretrained else None
        backbone = tv_models.resnet18(weights=weights)
        in_features = backbone.fc.in_features
        backbone.fc = nn.Identity()
        self.model = backbone
        self.head = nn.Linear(in_features, self.output_size)

    def extract_features(self, images: torch.Tensor) -> torch.Tensor:
        return self.model(images)  # type: ignore[no-any-return]
