"""ONNX-based landmark inferencer."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import onnxruntime as ort
import torch
from loguru import logger

from face_landmarks.config import LandmarkInferenceConfig
from face_landmarks.inference.base import BaseLandmarkInferencer


class ONNXLandmarkInferencer(BaseLandmarkInferencer):
    """Run landmark inference with an ONNX model.

    Loads a model exported via :func:`~face_landmarks.models.export_onnx`.
    Static spatial dimensions in the model's input signature define the
    expected batch shape; dynamic ones fall back to ``config.input_size``.

    Args:
        model_path: Path to the ``.onnx`` file.
        config: Pipeline configuration.
    """

    def __init__(
        self,
        model_path: str | Path,
        config: LandmarkInferenceConfig | None = None,
    ) -> None:
        super().__init__(config)
        model_path = Path(model_path)

        self.session: ort.InferenceSession | None = ort.InferenceSession(
            str(model_path),
            providers=ort.get_available_providers(),
        )
        model_input = self.session.get_inputs()[0]
        self.input_name = model_input.name
        self._input_shape = self._static_input_shape(getattr(model_input, "shape", None))
        logger.info(
            f"Loaded ONNX landmark model {model_path} "
            f"(input '{self.input_name}' {self._input_shape})"
        )

    def _static_input_shape(self, dims: Any) -> tuple[int, int, int]:
        size = self.config.input_size
        fallback = (3, size, size)
        if not isinstance(dims, (list, tuple)) or len(dims) != 4:
            return fallback
        return tuple(  # type: ignore[return-value]
            d if isinstance(d, int) else default
            for d, default in zip(dims[1:], fallback)
        )

    @property
    def expected_input_shape(self) -> tuple[int, int, int]:
        return self._input_shape

    def forward(self, batch: torch.Tensor) -> torch.Tensor:
        if self.session is None:
            raise RuntimeError("ONNX session already released")
        input_array = batch.detach().cpu().numpy().astype(np.float32, copy=False)
        output = self.session.run(None, {self.input_name: input_array})[0]
        return torch.from_numpy(np.asarray(output, dtype=np.float32))

    def _release(self) -> None:
        self.session = None
