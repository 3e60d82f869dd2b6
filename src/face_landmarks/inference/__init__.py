"""Landmark inference framework."""

from face_landmarks.inference.base import BaseLandmarkInferencer
from face_landmarks.inference.onnx_inferencer import ONNXLandmarkInferencer
from face_landmarks.inference.postprocess import postprocess
from face_landmarks.inference.torch_inferencer import TorchLandmarkInferencer

__all__ = [
    "BaseLandmarkInferencer",
    "ONNXLandmarkInferencer",
    "TorchLandmarkInferencer",
    "postprocess",
]
