"""End-to-end tests for the landmark inferencer pipeline."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AbstractContextManager
from pathlib import Path

import numpy as np
import pytest
import torch
from PIL import Image

from face_landmarks.config import LandmarkInferenceConfig
from face_landmarks.exceptions import (
    BatchShapeMismatchError,
    InvalidInputShapeError,
    ResourceDisposalError,
)
from face_landmarks.inference import TorchLandmarkInferencer
from face_landmarks.lifecycle import num_tensors
from face_landmarks.schemas import FaceLandmarks68, LandmarkSet, Point

from conftest import CentroidNet, to_tensor3d, to_tensor4d

Face = tuple[Image.Image, Point]
ReleaseCheck = Callable[[], AbstractContextManager[None]]


def _assert_at(landmarks: LandmarkSet, expected: Point, tol: float) -> None:
    for point in (landmarks.positions[0], landmarks.positions[33], landmarks.positions[-1]):
        assert point.distance_to(expected) < tol, f"{point} not within {tol}px of {expected}"


class _WrongOutputNet(CentroidNet):
    def forward(self, images: torch.Tensor) -> torch.Tensor:
        return torch.zeros(images.shape[0], 10)


class _FailingNet(CentroidNet):
    def forward(self, images: torch.Tensor) -> torch.Tensor:
        raise RuntimeError("forward exploded")


class TestDetectLandmarks:
    def test_square_image(
        self, centroid_inferencer: TorchLandmarkInferencer, square_face: Face
    ) -> None:
        image, center = square_face
        landmarks = centroid_inferencer.detect_landmarks(image)
        assert isinstance(landmarks, FaceLandmarks68)
        assert (landmarks.image_width, landmarks.image_height) == (150, 150)
        assert (landmarks.shift.x, landmarks.shift.y) == (0.0, 0.0)
        _assert_at(landmarks, center, 2.0)

    def test_landscape_image(
        self, centroid_inferencer: TorchLandmarkInferencer, rect_face: Face
    ) -> None:
        image, center = rect_face
        landmarks = centroid_inferencer.detect_landmarks(image)
        assert (landmarks.image_width, landmarks.image_height) == (200, 120)
        assert landmarks.shift.x == 0.0
        assert landmarks.shift.y == pytest.approx(22.4)
        _assert_at(landmarks, center, 3.0)

    def test_portrait_image(
        self, centroid_inferencer: TorchLandmarkInferencer, tall_face: Face
    ) -> None:
        image, center = tall_face
        landmarks = centroid_inferencer.detect_landmarks(image)
        assert landmarks.shift.x == pytest.approx(22.4)
        _assert_at(landmarks, center, 3.0)

    @pytest.mark.parametrize("convert", [to_tensor3d, to_tensor4d, np.asarray])
    def test_tensor_variants_match_image(
        self,
        centroid_inferencer: TorchLandmarkInferencer,
        rect_face: Face,
        convert: Callable[[Image.Image], object],
    ) -> None:
        image, _ = rect_face
        from_image = centroid_inferencer.detect_landmarks(image)
        from_tensor = centroid_inferencer.detect_landmarks(convert(image))
        assert not isinstance(from_tensor, list)
        assert from_tensor.positions[0].x == pytest.approx(from_image.positions[0].x, abs=1e-3)
        assert from_tensor.positions[0].y == pytest.approx(from_image.positions[0].y, abs=1e-3)

    def test_mixed_batch_preserves_order(
        self,
        centroid_inferencer: TorchLandmarkInferencer,
        square_face: Face,
        rect_face: Face,
        tall_face: Face,
    ) -> None:
        raw = [square_face[0], to_tensor3d(rect_face[0]), to_tensor4d(tall_face[0])]
        results = centroid_inferencer.detect_landmarks(raw)
        assert isinstance(results, list)
        assert [(r.image_width, r.image_height) for r in results] == [
            (150, 150),
            (200, 120),
            (120, 200),
        ]
        shifts = [(r.shift.x, r.shift.y) for r in results]
        assert shifts[0] == (0.0, 0.0)
        assert shifts[1] == pytest.approx((0.0, 22.4))
        assert shifts[2] == pytest.approx((22.4, 0.0))
        for result, (_, center) in zip(results, [square_face, rect_face, tall_face]):
            _assert_at(result, center, 3.0)

    def test_single_element_list_returns_list(
        self, centroid_inferencer: TorchLandmarkInferencer, square_face: Face
    ) -> None:
        results = centroid_inferencer.detect_landmarks([square_face[0]])
        assert isinstance(results, list)
        assert len(results) == 1

    def test_batched_rank4_tensor_returns_list(
        self,
        centroid_inferencer: TorchLandmarkInferencer,
        square_face: Face,
        second_face: Face,
    ) -> None:
        second = second_face[0].resize((150, 150))
        batch = torch.cat([to_tensor4d(square_face[0]), to_tensor4d(second)])
        results = centroid_inferencer.detect_landmarks(batch)
        assert isinstance(results, list)
        assert len(results) == 2
        _assert_at(results[0], square_face[1], 2.0)

    def test_batch_matches_single_calls(
        self,
        centroid_inferencer: TorchLandmarkInferencer,
        square_face: Face,
        second_face: Face,
        rect_face: Face,
    ) -> None:
        images = [square_face[0], second_face[0], rect_face[0]]
        batched = centroid_inferencer.detect_landmarks(images)
        for image, from_batch in zip(images, batched):
            single = centroid_inferencer.detect_landmarks(image)
            assert single.positions[5].x == pytest.approx(from_batch.positions[5].x, abs=1e-3)
            assert single.positions[5].y == pytest.approx(from_batch.positions[5].y, abs=1e-3)

    def test_top_left_padding(self, rect_face: Face) -> None:
        config = LandmarkInferenceConfig(padding="top_left")
        with TorchLandmarkInferencer(CentroidNet(), config) as inferencer:
            image, center = rect_face
            landmarks = inferencer.detect_landmarks(image)
        assert (landmarks.shift.x, landmarks.shift.y) == (0.0, 0.0)
        _assert_at(landmarks, center, 3.0)


class TestTensorLifecycle:
    def test_detect_landmarks_releases_all(
        self,
        centroid_inferencer: TorchLandmarkInferencer,
        rect_face: Face,
        tensors_released: ReleaseCheck,
    ) -> None:
        image = rect_face[0]
        with tensors_released():
            centroid_inferencer.detect_landmarks(image)
            centroid_inferencer.detect_landmarks(to_tensor3d(image))
            centroid_inferencer.detect_landmarks(to_tensor4d(image))
            centroid_inferencer.detect_landmarks([image, to_tensor3d(image)])

    def test_forward_input_output_is_caller_owned(
        self,
        centroid_inferencer: TorchLandmarkInferencer,
        square_face: Face,
        rect_face: Face,
    ) -> None:
        before = num_tensors()
        output = centroid_inferencer.forward_input([square_face[0], rect_face[0]])
        assert output.shape == (2, 136)
        assert num_tensors() == before + 1
        assert torch.all((output.tensor >= 0) & (output.tensor <= 1))
        output.dispose()
        assert num_tensors() == before

    def test_invalid_item_releases_all(
        self,
        centroid_inferencer: TorchLandmarkInferencer,
        square_face: Face,
        tensors_released: ReleaseCheck,
    ) -> None:
        with tensors_released():
            with pytest.raises(InvalidInputShapeError) as exc_info:
                centroid_inferencer.detect_landmarks(
                    [square_face[0], torch.zeros(10, 10, 2)]
                )
        assert exc_info.value.index == 1

    def test_forward_failure_releases_all(
        self, config: LandmarkInferenceConfig, square_face: Face,
        tensors_released: ReleaseCheck,
    ) -> None:
        with TorchLandmarkInferencer(_FailingNet(), config) as inferencer:
            with tensors_released():
                with pytest.raises(RuntimeError, match="forward exploded"):
                    inferencer.detect_landmarks(square_face[0])

    def test_input_shape_mismatch(
        self, config: LandmarkInferenceConfig, square_face: Face,
        tensors_released: ReleaseCheck,
    ) -> None:
        with TorchLandmarkInferencer(CentroidNet(input_size=64), config) as inferencer:
            with tensors_released():
                with pytest.raises(BatchShapeMismatchError, match="batch shape mismatch"):
                    inferencer.detect_landmarks(square_face[0])

    def test_output_shape_mismatch(
        self, config: LandmarkInferenceConfig, square_face: Face,
        tensors_released: ReleaseCheck,
    ) -> None:
        with TorchLandmarkInferencer(_WrongOutputNet(), config) as inferencer:
            with tensors_released():
                with pytest.raises(BatchShapeMismatchError, match="output shape mismatch"):
                    inferencer.forward_input(square_face[0])


class TestInferencerDisposal:
    def test_dispose_releases_weights(self, config: LandmarkInferenceConfig) -> None:
        before = num_tensors()
        inferencer = TorchLandmarkInferencer(CentroidNet(), config)
        assert num_tensors() > before
        inferencer.dispose()
        assert num_tensors() == before
        assert inferencer.is_disposed

    def test_double_dispose_raises(self, config: LandmarkInferenceConfig) -> None:
        inferencer = TorchLandmarkInferencer(CentroidNet(), config)
        inferencer.dispose()
        with pytest.raises(ResourceDisposalError, match="already disposed"):
            inferencer.dispose()

    def test_use_after_dispose_raises(
        self, config: LandmarkInferenceConfig, square_face: Face,
        tensors_released: ReleaseCheck,
    ) -> None:
        inferencer = TorchLandmarkInferencer(CentroidNet(), config)
        inferencer.dispose()
        with tensors_released():
            with pytest.raises(ResourceDisposalError, match="used after dispose"):
                inferencer.detect_landmarks(square_face[0])

    def test_landmark_count_must_match_config(self) -> None:
        with pytest.raises(ValueError, match="landmarks"):
            TorchLandmarkInferencer(CentroidNet(), LandmarkInferenceConfig(num_landmarks=5))

    def test_load_state_dict(
        self, tmp_path: Path, config: LandmarkInferenceConfig, square_face: Face
    ) -> None:
        weights = tmp_path / "centroid.pt"
        torch.save(CentroidNet().state_dict(), weights)
        with TorchLandmarkInferencer.load(CentroidNet(), weights, config) as inferencer:
            landmarks = inferencer.detect_landmarks(square_face[0])
        _assert_at(landmarks, square_face[1], 2.0)


class TestAsync:
    def test_detect_landmarks_async_matches_sync(
        self, centroid_inferencer: TorchLandmarkInferencer, rect_face: Face
    ) -> None:
        image = rect_face[0]
        expected = centroid_inferencer.detect_landmarks(image)
        result = asyncio.run(centroid_inferencer.detect_landmarks_async(image))
        assert result.positions[0].x == pytest.approx(expected.positions[0].x, abs=1e-4)
        assert result.positions[0].y == pytest.approx(expected.positions[0].y, abs=1e-4)

    def test_concurrent_calls_keep_separate_scopes(
        self,
        centroid_inferencer: TorchLandmarkInferencer,
        square_face: Face,
        second_face: Face,
        rect_face: Face,
        tensors_released: ReleaseCheck,
    ) -> None:
        faces = [square_face, second_face, rect_face]

        async def run_all() -> list[LandmarkSet | list[LandmarkSet]]:
            return await asyncio.gather(
                *(centroid_inferencer.detect_landmarks_async(f[0]) for f in faces)
            )

        with tensors_released():
            results = asyncio.run(run_all())
        for result, (_, center) in zip(results, faces):
            assert isinstance(result, FaceLandmarks68)
            _assert_at(result, center, 3.0)

    def test_forward_input_async(
        self, centroid_inferencer: TorchLandmarkInferencer, square_face: Face
    ) -> None:
        before = num_tensors()
        output = asyncio.run(centroid_inferencer.forward_input_async(square_face[0]))
        assert output.shape == (1, 136)
        output.dispose()
        assert num_tensors() == before
