"""Resolve caller inputs into explicit tagged variants.

Everything downstream of :func:`to_net_input` works on :class:`NetInput`, an
ordered list of :data:`~face_landmarks.types.InputItem` variants, and never
inspects raw caller objects again.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

import numpy as np
import torch
from PIL import Image

from face_landmarks.exceptions import (
    InvalidInputShapeError,
    UnsupportedInputTypeError,
)
from face_landmarks.types import (
    ImageItem,
    InputItem,
    RawInput,
    Tensor3DItem,
    Tensor4DItem,
)

_VARIANTS = (ImageItem, Tensor3DItem, Tensor4DItem)


class NetInput:
    """Ordered batch of resolved input items.

    Args:
        items: Items in caller order.  Output index ``i`` always belongs to
            ``items[i]``.
        is_batch_input: ``True`` when the caller passed a sequence (or an
            already-batched rank-4 tensor) and expects a list back.
    """

    def __init__(self, items: Sequence[InputItem], is_batch_input: bool = True) -> None:
        if not items:
            raise InvalidInputShapeError("empty input, expected at least one item")
        self.items: list[InputItem] = list(items)
        self.is_batch_input = is_batch_input

    @property
    def batch_size(self) -> int:
        return len(self.items)

    @property
    def input_dimensions(self) -> list[tuple[int, int]]:
        """``(width, height)`` of every item, in order."""
        return [(item.width, item.height) for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[InputItem]:
        return iter(self.items)

    def __getitem__(self, index: int) -> InputItem:
        return self.items[index]

    def __repr__(self) -> str:
        kinds = ", ".join(item.kind for item in self.items)
        return f"NetInput([{kinds}], is_batch_input={self.is_batch_input})"


def _as_tensor(obj: object, index: int | None) -> torch.Tensor:
    if isinstance(obj, torch.Tensor):
        return obj
    if isinstance(obj, np.ndarray):
        array = np.ascontiguousarray(obj)
        # torch.from_numpy warns on read-only buffers such as np.asarray(PIL.Image)
        if not array.flags.writeable:
            array = array.copy()
        return torch.from_numpy(array)
    raise UnsupportedInputTypeError(obj, index=index)


def to_item(obj: object, index: int | None = None) -> InputItem:
    """Resolve one caller object into exactly one input variant.

    Rank-4 tensors must have batch size 1 here; larger batches are only
    accepted as a whole top-level input (see :func:`to_net_input`).
    """
    if isinstance(obj, _VARIANTS):
        return obj
    if isinstance(obj, Image.Image):
        return ImageItem(image=obj)

    tensor = _as_tensor(obj, index)
    if tensor.dim() == 3:
        return Tensor3DItem(tensor=tensor)
    if tensor.dim() == 4:
        if tensor.shape[0] != 1:
            raise InvalidInputShapeError(
                f"rank-4 tensor with batch size {tensor.shape[0]} inside an "
                "input sequence, only batch size 1 is supported there",
                index=index,
            )
        return Tensor4DItem(tensor=tensor)
    raise InvalidInputShapeError(
        f"unsupported tensor rank {tensor.dim()}, expected 3 (HxWxC) "
        "or 4 (1xHxWxC)",
        index=index,
    )


def to_net_input(raw: RawInput | NetInput) -> NetInput:
    """Build a :class:`NetInput` from any supported caller input.

    - a list/tuple of items -> batch input, one item per element
    - a rank-4 tensor with batch size > 1 -> batch input, one item per row
    - anything else -> single item, ``is_batch_input=False``
    """
    if isinstance(raw, NetInput):
        return raw
    if isinstance(raw, (list, tuple)):
        return NetInput(
            [to_item(obj, index=i) for i, obj in enumerate(raw)],
            is_batch_input=True,
        )
    if isinstance(raw, (torch.Tensor, np.ndarray)):
        tensor = _as_tensor(raw, None)
        if tensor.dim() == 4 and tensor.shape[0] == 0:
            raise InvalidInputShapeError("rank-4 tensor with batch size 0")
        if tensor.dim() == 4 and tensor.shape[0] > 1:
            return NetInput(
                [Tensor4DItem(tensor=row.unsqueeze(0)) for row in tensor.unbind(0)],
                is_batch_input=True,
            )
    return NetInput([to_item(raw)], is_batch_input=False)
