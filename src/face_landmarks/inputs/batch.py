"""Stack canonicalized items into one network batch."""

from __future__ import annotations

import torch
from loguru import logger

from face_landmarks.config import LandmarkInferenceConfig
from face_landmarks.inputs.canonicalize import canonicalize
from face_landmarks.inputs.net_input import NetInput
from face_landmarks.lifecycle import TensorHandle, TensorScope, track
from face_landmarks.schemas.geometry import ItemGeometry


def assemble(
    net_input: NetInput, config: LandmarkInferenceConfig
) -> tuple[TensorHandle, list[ItemGeometry]]:
    """Canonicalize every item and stack them into ``(B, 3, S, S)``.

    ``geometries[i]`` always describes ``net_input[i]``.  If any item fails,
    every tensor created so far is released before the error propagates.
    """
    geometries: list[ItemGeometry] = []
    with TensorScope("assemble") as scope:
        items: list[TensorHandle] = []
        for index, item in enumerate(net_input):
            handle, geometry = canonicalize(item, config, index=index)
            items.append(handle)
            geometries.append(geometry)

        batch = track(torch.stack([h.tensor for h in items]))
        for handle in items:
            handle.dispose()
        scope.keep(batch)

    logger.debug(
        f"Assembled batch {tuple(batch.shape)} from {net_input.batch_size} items, "
        f"input dimensions {net_input.input_dimensions}"
    )
    return batch, geometries
