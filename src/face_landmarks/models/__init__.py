"""Landmark network implementations."""

from face_landmarks.models.base import FACE_MEAN_RGB, BaseLandmarkNet
from face_landmarks.models.dense import (
    DenseBlock,
    LandmarkNet68,
    SeparableConv2d,
    TinyLandmarkNet68,
)
from face_landmarks.models.export import export_onnx
from face_landmarks.models.resnet import ResNet18LandmarkNet

__all__ = [
    "FACE_MEAN_RGB",
    "BaseLandmarkNet",
    "DenseBlock",
    "LandmarkNet68",
    "ResNet18LandmarkNet",
    "SeparableConv2d",
    "TinyLandmarkNet68",
    "export_onnx",
]
