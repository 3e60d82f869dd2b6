"""
ONNX export for landmark networks.

The exported graph takes raw 0-255 ``input`` of shape ``(batch_size, 3, S, S)``
and returns ``landmarks`` of shape ``(batch_size, 2 * num_landmarks)``;
normalization lives inside the graph.
"""

from __future__ import annotations

import copy
from pathlib import Path

import torch
from loguru import logger

from face_landmarks.models.base import BaseLandmarkNet


def export_onnx(
    model: BaseLandmarkNet,
    output_path: str | Path,
    opset_version: int = 17,
) -> Path:
    """Export a CPU copy of ``model`` with a dynamic batch axis.

    The live model is left untouched (device and train/eval mode).
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Deep copy and move to CPU for export
    model_copy = copy.deepcopy(model).cpu().eval()
    dummy_input = torch.rand(1, 3, model.input_size, model.input_size) * 255.0

    torch.onnx.export(
        model_copy,
        (dummy_input,),
        str(output_path),
        input_names=["input"],
        output_names=["landmarks"],
        opset_version=opset_version,
        dynamic_axes={
            "input": {0: "batch_size"},
            "landmarks": {0: "batch_size"},
        },
        dynamo=False,
    )

    file_size = output_path.stat().st_size
    logger.info(
        f"ONNX landmark model exported to {output_path} ({file_size / 1024:.1f} KB)"
    )
    return output_path
