"""Abstract base class for landmark inferencers."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from types import TracebackType

import torch
from loguru import logger

from face_landmarks.config import LandmarkInferenceConfig
from face_landmarks.exceptions import BatchShapeMismatchError, ResourceDisposalError
from face_landmarks.inference.postprocess import postprocess
from face_landmarks.inputs.batch import assemble
from face_landmarks.inputs.net_input import NetInput, to_net_input
from face_landmarks.lifecycle import TensorHandle, TensorScope, track
from face_landmarks.schemas.landmarks import LandmarkSet
from face_landmarks.types import RawInput


class BaseLandmarkInferencer(ABC):
    """Base class for landmark inferencers.

    Subclasses implement the network forward pass (:meth:`forward`), declare
    the input shape the network accepts (:attr:`expected_input_shape`) and
    release their weights in :meth:`_release`.  Input resolution, letterboxing,
    batching, shape checks, coordinate remapping and tensor lifecycle are
    shared here.

    Every public call runs inside its own :class:`TensorScope`, so the number
    of live tensors after a call equals the number before it, plus the
    output of :meth:`forward_input` which the caller must dispose.
    """

    def __init__(self, config: LandmarkInferenceConfig | None = None) -> None:
        self.config = config or LandmarkInferenceConfig()
        self._disposed = False

    @property
    @abstractmethod
    def expected_input_shape(self) -> tuple[int, int, int]:
        """``(channels, height, width)`` of one item of the network input."""

    @abstractmethod
    def forward(self, batch: torch.Tensor) -> torch.Tensor:
        """Run the network on ``(B, 3, S, S)`` and return ``(B, 2 * num_landmarks)``.

        May run in a worker thread (see :meth:`detect_landmarks_async`), so it
        must only read the loaded weights.
        """

    @abstractmethod
    def _release(self) -> None:
        """Free all weight tensors."""

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Release the network weights.  The inferencer is unusable afterwards."""
        if self._disposed:
            raise ResourceDisposalError(f"{type(self).__name__} already disposed")
        self._release()
        self._disposed = True
        logger.info(f"{type(self).__name__} disposed")

    def __enter__(self) -> BaseLandmarkInferencer:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self._disposed:
            self.dispose()

    # ------------------------------------------------------------------
    # Forward pass with shape contract
    # ------------------------------------------------------------------

    def _check_batch(self, batch: TensorHandle) -> None:
        if self._disposed:
            raise ResourceDisposalError(f"{type(self).__name__} used after dispose")
        shape = batch.shape
        expected = self.expected_input_shape
        if len(shape) != 4 or shape[1:] != expected:
            raise BatchShapeMismatchError(
                (shape[0] if shape else 0, *expected), shape
            )

    def _own_output(self, output: torch.Tensor, batch_size: int) -> TensorHandle:
        with TensorScope("forward") as scope:
            handle = track(output)
            expected = (batch_size, self.config.output_size)
            if handle.shape != expected:
                raise BatchShapeMismatchError(expected, handle.shape, what="output")
            scope.keep(handle)
        return handle

    def run_forward(self, batch: TensorHandle) -> TensorHandle:
        """Shape-checked forward pass.

        Raises:
            BatchShapeMismatchError: the batch or output shape breaks the
                network contract.
        """
        self._check_batch(batch)
        return self._own_output(self.forward(batch.tensor), batch.shape[0])

    async def run_forward_async(self, batch: TensorHandle) -> TensorHandle:
        """:meth:`run_forward` with the network running in a worker thread."""
        self._check_batch(batch)
        output = await asyncio.to_thread(self.forward, batch.tensor)
        return self._own_output(output, batch.shape[0])

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def forward_input(self, raw: RawInput | NetInput) -> TensorHandle:
        """Raw ``(B, 2 * num_landmarks)`` network output for ``raw``.

        The caller owns the returned handle and must dispose it.
        """
        net_input = to_net_input(raw)
        with TensorScope("forward_input") as scope:
            batch, _ = assemble(net_input, self.config)
            output = scope.keep(self.run_forward(batch))
        return output

    async def forward_input_async(self, raw: RawInput | NetInput) -> TensorHandle:
        net_input = to_net_input(raw)
        with TensorScope("forward_input") as scope:
            batch, _ = assemble(net_input, self.config)
            output = scope.keep(await self.run_forward_async(batch))
        return output

    def detect_landmarks(
        self, raw: RawInput | NetInput
    ) -> LandmarkSet | list[LandmarkSet]:
        """Landmarks in original-image pixels.

        A single item returns one landmark set; a sequence (or a batched
        rank-4 tensor) returns a list aligned with the input order.
        """
        net_input = to_net_input(raw)
        with TensorScope("detect_landmarks"):
            batch, geometries = assemble(net_input, self.config)
            output = self.run_forward(batch)
            batch.dispose()
            landmarks = postprocess(
                output,
                geometries,
                self.config.input_size,
                self.config.num_landmarks,
            )
        return landmarks if net_input.is_batch_input else landmarks[0]

    async def detect_landmarks_async(
        self, raw: RawInput | NetInput
    ) -> LandmarkSet | list[LandmarkSet]:
        """:meth:`detect_landmarks` yielding to the event loop during the forward pass."""
        net_input = to_net_input(raw)
        with TensorScope("detect_landmarks"):
            batch, geometries = assemble(net_input, self.config)
            output = await self.run_forward_async(batch)
            batch.dispose()
            landmarks = postprocess(
                output,
                geometries,
                self.config.input_size,
                self.config.num_landmarks,
            )
        return landmarks if net_input.is_batch_input else landmarks[0]
