"""Convert one input item into the network's canonical square frame.

The item is padded at native resolution to a square of side ``max(w, h)``
(letterbox, never crop), then resized to ``input_size x input_size``.  The
returned :class:`~face_landmarks.schemas.ItemGeometry` records the exact
inverse.  Letterboxed items carry ``scale = input_size / max(w, h)`` and the
padding offset in canonical pixels; items that are already square carry
``scale == 1``, zero shift and the direct ``resize`` factor.
"""

from __future__ import annotations

import torch
import torch.nn.functional as nnf
from torchvision.transforms import InterpolationMode
from torchvision.transforms.v2 import functional as F

from face_landmarks.config import LandmarkInferenceConfig
from face_landmarks.exceptions import InvalidInputShapeError
from face_landmarks.lifecycle import TensorHandle, TensorScope, track
from face_landmarks.schemas.geometry import ItemGeometry
from face_landmarks.types import ImageItem, InputItem, Tensor3DItem, Tensor4DItem

Padding = tuple[int, int, int, int]


def compute_letterbox(
    width: int, height: int, input_size: int, policy: str = "center"
) -> tuple[ItemGeometry, Padding]:
    """Geometry and ``(left, right, top, bottom)`` native-pixel padding for one item."""
    side = max(width, height)
    pad_x = side - width
    pad_y = side - height
    if policy == "center":
        left, top = pad_x // 2, pad_y // 2
    elif policy == "top_left":
        left, top = 0, 0
    else:
        raise ValueError(f"unknown padding policy {policy!r}")

    fit = input_size / side
    if pad_x or pad_y:
        scale, resize = fit, 1.0
    else:
        scale, resize = 1.0, fit
    geometry = ItemGeometry(
        original_width=width,
        original_height=height,
        scale=scale,
        resize=resize,
        shift_x=left * fit,
        shift_y=top * fit,
    )
    return geometry, (left, pad_x - left, top, pad_y - top)


def _to_chw(item: InputItem, index: int | None) -> torch.Tensor:
    """Channel-first RGB view/copy of one item, in its original dtype."""
    if isinstance(item, ImageItem):
        return F.pil_to_tensor(item.image.convert("RGB"))

    if isinstance(item, Tensor3DItem):
        hwc = item.tensor
    elif isinstance(item, Tensor4DItem):
        hwc = item.tensor[0]
    else:
        raise InvalidInputShapeError(f"unknown input variant {type(item).__name__}", index)

    channels = hwc.shape[2]
    if channels == 1:
        hwc = hwc.expand(-1, -1, 3)
    elif channels == 4:
        hwc = hwc[..., :3]
    elif channels != 3:
        raise InvalidInputShapeError(
            f"unsupported channel count {channels}, expected 1, 3 or 4", index
        )
    return hwc.permute(2, 0, 1)


def canonicalize(
    item: InputItem,
    config: LandmarkInferenceConfig,
    index: int | None = None,
) -> tuple[TensorHandle, ItemGeometry]:
    """Letterbox ``item`` into a ``(3, S, S)`` float32 tensor.

    Every intermediate is released before returning; the result handle
    belongs to the caller's active scope.

    Raises:
        InvalidInputShapeError: zero width/height or unsupported channels.
    """
    width, height = item.width, item.height
    if width <= 0 or height <= 0:
        raise InvalidInputShapeError(f"zero-sized input ({width}x{height})", index)

    size = config.input_size
    geometry, padding = compute_letterbox(width, height, size, config.padding)

    with TensorScope(f"canonicalize[{index}]") as scope:
        current = track(
            _to_chw(item, index).to(device=config.device, dtype=torch.float32)
        )

        if any(padding):
            padded = track(
                nnf.pad(current.tensor, padding, mode="constant", value=config.pad_value)
            )
            current.dispose()
            current = padded

        if current.shape[-2:] != (size, size):
            resized = track(
                F.resize(
                    current.tensor,
                    [size, size],
                    interpolation=InterpolationMode.BILINEAR,
                    antialias=True,
                )
            )
            current.dispose()
            current = resized

        scope.keep(current)

    return current, geometry
