"""Shared pytest fixtures for face_landmarks tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager

import numpy as np
import pytest
import torch
from PIL import Image

from face_landmarks.config import LandmarkInferenceConfig
from face_landmarks.inference import TorchLandmarkInferencer
from face_landmarks.lifecycle import num_tensors
from face_landmarks.models.base import BaseLandmarkNet
from face_landmarks.schemas import Point

BLOB_RADIUS = 2


class CentroidNet(BaseLandmarkNet):
    """Deterministic stand-in for a trained network.

    Predicts every landmark at the intensity-weighted centroid of the frame,
    in pixel-center coordinates.  On a black image with one bright blob the
    exact answer is the blob center, so round trips through letterboxing can
    be checked to sub-pixel accuracy.
    """

    def forward(self, images: torch.Tensor) -> torch.Tensor:
        b, _, h, w = images.shape
        weights = images.mean(dim=1)
        total = weights.sum(dim=(1, 2)).clamp_min(1e-6)
        xs = (torch.arange(w, dtype=images.dtype) + 0.5) / w
        ys = (torch.arange(h, dtype=images.dtype) + 0.5) / h
        cx = (weights.sum(dim=1) * xs).sum(dim=1) / total
        cy = (weights.sum(dim=2) * ys).sum(dim=1) / total
        pair = torch.stack([cx, cy], dim=1)
        return pair.repeat(1, self.num_landmarks).view(b, 2 * self.num_landmarks)


def blob_image(width: int, height: int, cx: int, cy: int) -> tuple[Image.Image, Point]:
    """Black RGB image with a white square blob centered on pixel ``(cx, cy)``.

    Returns the image and the blob center in continuous pixel coordinates.
    """
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[
        cy - BLOB_RADIUS : cy + BLOB_RADIUS + 1,
        cx - BLOB_RADIUS : cx + BLOB_RADIUS + 1,
    ] = 255
    return Image.fromarray(arr), Point(x=cx + 0.5, y=cy + 0.5)


def to_tensor3d(image: Image.Image) -> torch.Tensor:
    return torch.from_numpy(np.asarray(image).copy())


def to_tensor4d(image: Image.Image) -> torch.Tensor:
    return to_tensor3d(image).unsqueeze(0)


@pytest.fixture()
def square_face() -> tuple[Image.Image, Point]:
    """150x150, the native aspect matches the canonical frame."""
    return blob_image(150, 150, 60, 85)


@pytest.fixture()
def second_face() -> tuple[Image.Image, Point]:
    return blob_image(180, 180, 120, 40)


@pytest.fixture()
def rect_face() -> tuple[Image.Image, Point]:
    """200x120 landscape, needs vertical letterboxing."""
    return blob_image(200, 120, 140, 30)


@pytest.fixture()
def tall_face() -> tuple[Image.Image, Point]:
    """120x200 portrait, needs horizontal letterboxing."""
    return blob_image(120, 200, 25, 150)


@pytest.fixture()
def config() -> LandmarkInferenceConfig:
    return LandmarkInferenceConfig()


@pytest.fixture()
def centroid_inferencer(
    config: LandmarkInferenceConfig,
) -> Iterator[TorchLandmarkInferencer]:
    inferencer = TorchLandmarkInferencer(CentroidNet(), config)
    yield inferencer
    if not inferencer.is_disposed:
        inferencer.dispose()


@pytest.fixture()
def tensors_released() -> Callable[[], AbstractContextManager[None]]:
    """Context manager asserting the live tensor count is unchanged by a block."""

    @contextmanager
    def _check() -> Iterator[None]:
        before = num_tensors()
        yield
        after = num_tensors()
        assert after == before, f"leaked {after - before} tensor(s)"

    return _check
