"""
Custom exceptions for the face landmark pipeline.

Input errors are recoverable by the caller (fix the input and retry);
shape mismatches and disposal errors indicate a bug in the pipeline itself.
"""

from __future__ import annotations


class LandmarkError(Exception):
    """Base exception for landmark-pipeline errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidInputShapeError(LandmarkError):
    """Raised when an input item has zero dimensions or an unsupported rank."""

    def __init__(self, reason: str, index: int | None = None) -> None:
        self.reason = reason
        self.index = index
        if index is None:
            message = f"Invalid input: {reason}"
        else:
            message = f"Invalid input at batch index {index}: {reason}"
        super().__init__(message)


class UnsupportedInputTypeError(InvalidInputShapeError, TypeError):
    """Raised when an input item is neither an image nor a numeric tensor."""

    def __init__(self, obj: object, index: int | None = None) -> None:
        self.obj_type = type(obj)
        super().__init__(
            f"expected PIL.Image.Image, torch.Tensor or numpy.ndarray, "
            f"got {self.obj_type.__name__}",
            index=index,
        )


class BatchShapeMismatchError(LandmarkError):
    """Raised when the batch shape disagrees with what the network expects.

    This is an internal consistency failure: the canonical shape used to
    assemble the batch does not match the network's input (or output) contract.
    """

    def __init__(
        self,
        expected: tuple[int, ...],
        actual: tuple[int, ...],
        what: str = "batch",
    ) -> None:
        self.expected = expected
        self.actual = actual
        message = f"{what} shape mismatch: expected {expected}, got {actual}"
        super().__init__(message)


class ResourceDisposalError(LandmarkError):
    """Raised on double dispose or use of a tensor handle after dispose."""
