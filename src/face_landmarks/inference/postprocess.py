"""Map raw network output back into each item's original pixel space."""

from __future__ import annotations

from collections.abc import Sequence

import torch

from face_landmarks.exceptions import BatchShapeMismatchError
from face_landmarks.lifecycle import TensorHandle
from face_landmarks.schemas.geometry import ItemGeometry
from face_landmarks.schemas.landmarks import FaceLandmarks68, LandmarkSet


def postprocess(
    raw: TensorHandle,
    geometries: Sequence[ItemGeometry],
    input_size: int,
    num_landmarks: int = 68,
) -> list[LandmarkSet]:
    """Un-letterbox every row of ``raw``.

    Row ``i`` holds ``num_landmarks`` interleaved ``(x, y)`` pairs in ``[0, 1]``
    relative to the canonical frame; ``geometries[i]`` is the transform that
    placed item ``i`` in that frame.  ``raw`` is disposed once read, also when
    its shape is wrong.
    """
    try:
        output = raw.tensor
        expected = (len(geometries), 2 * num_landmarks)
        if tuple(output.shape) != expected:
            raise BatchShapeMismatchError(expected, tuple(output.shape), what="output")
        coords = (
            output.detach()
            .to("cpu", torch.float64)
            .reshape(len(geometries), num_landmarks, 2)
            * input_size
        )
    finally:
        raw.dispose()

    landmark_cls = FaceLandmarks68 if num_landmarks == 68 else LandmarkSet
    results: list[LandmarkSet] = []
    for points, geometry in zip(coords.tolist(), geometries):
        results.append(
            landmark_cls(
                positions=tuple(geometry.to_original(x, y) for x, y in points),
                image_width=geometry.original_width,
                image_height=geometry.original_height,
                shift=geometry.shift,
            )
        )
    return results
