"""PyTorch landmark inferencer."""

from __future__ import annotations

import itertools
from pathlib import Path

import torch
from loguru import logger

from face_landmarks.config import LandmarkInferenceConfig
from face_landmarks.inference.base import BaseLandmarkInferencer
from face_landmarks.lifecycle import TensorHandle
from face_landmarks.models.base import BaseLandmarkNet


class TorchLandmarkInferencer(BaseLandmarkInferencer):
    """Run landmark inference with an in-process :class:`BaseLandmarkNet`.

    Every parameter and buffer of the network is registered as a
    :class:`TensorHandle` for as long as the inferencer lives, so loading and
    disposing a network leaves the live-tensor count unchanged.

    Args:
        model: Network to run; moved to ``config.device`` and set to eval mode.
        config: Pipeline configuration.
    """

    def __init__(
        self,
        model: BaseLandmarkNet,
        config: LandmarkInferenceConfig | None = None,
    ) -> None:
        super().__init__(config)
        if model.num_landmarks != self.config.num_landmarks:
            raise ValueError(
                f"model predicts {model.num_landmarks} landmarks, config expects "
                f"{self.config.num_landmarks}"
            )
        self.model = model.to(self.config.device).eval()
        self._weight_handles = [
            TensorHandle(t)
            for t in itertools.chain(self.model.parameters(), self.model.buffers())
        ]

    @classmethod
    def load(
        cls,
        model: BaseLandmarkNet,
        weights_path: str | Path,
        config: LandmarkInferenceConfig | None = None,
        strict: bool = True,
    ) -> TorchLandmarkInferencer:
        """Load a ``state_dict`` file into ``model`` and wrap it."""
        weights_path = Path(weights_path)
        state_dict = torch.load(weights_path, map_location="cpu", weights_only=True)
        model.load_state_dict(state_dict, strict=strict)
        logger.info(
            f"Loaded {type(model).__name__} weights from {weights_path} "
            f"({len(state_dict)} tensors)"
        )
        return cls(model, config)

    @property
    def expected_input_shape(self) -> tuple[int, int, int]:
        return (3, self.model.input_size, self.model.input_size)

    def forward(self, batch: torch.Tensor) -> torch.Tensor:
        with torch.inference_mode():
            output = self.model(batch.to(self.config.device))
        return output.float().cpu()

    def _release(self) -> None:
        for handle in self._weight_handles:
            handle.dispose()
        self._weight_handles.clear()
        # Dropping to the meta device frees parameter storage but keeps the
        # module structure for introspection.
        self.model.to("meta")
