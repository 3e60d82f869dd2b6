"""Explicit tensor ownership for the inference pipeline.

Every tensor produced while preprocessing, batching or running the network is
wrapped in a :class:`TensorHandle`.  Handles are counted by a process-wide
registry so the number of live tensors can be checked before and after any
call::

    before = num_tensors()
    with TensorScope() as scope:
        batch = scope.track(torch.zeros(1, 3, 112, 112))
        ...
    assert num_tensors() == before

A :class:`TensorScope` is an arena: handles created through :func:`track`
while it is active are disposed when it exits, whether the block returned or
raised.  Handles passed to :meth:`TensorScope.keep` survive and are handed to
the enclosing scope, or to the caller when there is none.  The active scope
lives in a :mod:`contextvars` variable, so concurrent asyncio tasks never
share one.
"""

from __future__ import annotations

import itertools
import threading
from contextvars import ContextVar, Token
from types import TracebackType

import torch
from loguru import logger

from face_landmarks.exceptions import ResourceDisposalError
from face_landmarks.types import MemoryInfo


class TensorRegistry:
    """Bookkeeping of every live :class:`TensorHandle`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count()
        self._live: dict[int, TensorHandle] = {}

    def register(self, handle: TensorHandle) -> int:
        with self._lock:
            handle_id = next(self._ids)
            self._live[handle_id] = handle
        return handle_id

    def unregister(self, handle_id: int) -> None:
        with self._lock:
            if self._live.pop(handle_id, None) is None:
                raise ResourceDisposalError(
                    f"tensor handle #{handle_id} is not registered"
                )

    def num_tensors(self) -> int:
        with self._lock:
            return len(self._live)

    def num_bytes(self) -> int:
        with self._lock:
            handles = list(self._live.values())
        return sum(h.nbytes for h in handles)


_REGISTRY = TensorRegistry()


class TensorHandle:
    """Disposable owner of one ``torch.Tensor``.

    Disposing drops the handle's reference to the tensor and removes it from
    the registry.  Disposing twice, or reading :attr:`tensor` afterwards,
    raises :class:`ResourceDisposalError`.
    """

    __slots__ = ("_tensor", "_id", "_registry")

    def __init__(
        self, tensor: torch.Tensor, registry: TensorRegistry | None = None
    ) -> None:
        self._registry = registry or _REGISTRY
        self._tensor: torch.Tensor | None = tensor
        self._id = self._registry.register(self)

    @property
    def id(self) -> int:
        return self._id

    @property
    def tensor(self) -> torch.Tensor:
        if self._tensor is None:
            raise ResourceDisposalError(
                f"tensor handle #{self._id} used after dispose"
            )
        return self._tensor

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(self.tensor.shape)

    @property
    def rank(self) -> int:
        return self.tensor.dim()

    @property
    def nbytes(self) -> int:
        if self._tensor is None:
            return 0
        return self._tensor.element_size() * self._tensor.nelement()

    @property
    def is_disposed(self) -> bool:
        return self._tensor is None

    def dispose(self) -> None:
        if self._tensor is None:
            raise ResourceDisposalError(
                f"tensor handle #{self._id} already disposed"
            )
        self._tensor = None
        self._registry.unregister(self._id)

    def __repr__(self) -> str:
        if self._tensor is None:
            return f"TensorHandle(#{self._id}, disposed)"
        return f"TensorHandle(#{self._id}, shape={tuple(self._tensor.shape)})"


_current_scope: ContextVar[TensorScope | None] = ContextVar(
    "face_landmarks_tensor_scope", default=None
)


class TensorScope:
    """Arena disposing every handle created inside it on exit.

    Args:
        name: Label used in debug logs.
    """

    def __init__(self, name: str = "scope") -> None:
        self.name = name
        self._handles: list[TensorHandle] = []
        self._kept: set[int] = set()
        self._parent: TensorScope | None = None
        self._token: Token[TensorScope | None] | None = None

    def __enter__(self) -> TensorScope:
        self._parent = _current_scope.get()
        self._token = _current_scope.set(self)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _current_scope.reset(self._token)
            self._token = None

        disposed = 0
        kept: list[TensorHandle] = []
        for handle in reversed(self._handles):
            if handle.id in self._kept:
                kept.append(handle)
            elif not handle.is_disposed:
                handle.dispose()
                disposed += 1
        self._handles.clear()
        self._kept.clear()

        if self._parent is not None:
            for handle in reversed(kept):
                self._parent.adopt(handle)

        logger.debug(
            f"TensorScope '{self.name}' exited "
            f"({'error' if exc_type else 'ok'}): disposed {disposed}, "
            f"kept {len(kept)}"
        )

    @property
    def handles(self) -> list[TensorHandle]:
        return list(self._handles)

    def track(self, tensor: torch.Tensor) -> TensorHandle:
        """Wrap ``tensor`` in a new handle owned by this scope."""
        return self.adopt(TensorHandle(tensor))

    def adopt(self, handle: TensorHandle) -> TensorHandle:
        """Take ownership of an existing handle."""
        self._handles.append(handle)
        return handle

    def keep(self, handle: TensorHandle) -> TensorHandle:
        """Exempt ``handle`` from disposal when this scope exits."""
        if handle.is_disposed:
            raise ResourceDisposalError(
                f"cannot keep disposed tensor handle #{handle.id}"
            )
        if all(h is not handle for h in self._handles):
            raise ResourceDisposalError(
                f"tensor handle #{handle.id} is not owned by scope '{self.name}'"
            )
        self._kept.add(handle.id)
        return handle


def current_scope() -> TensorScope | None:
    return _current_scope.get()


def track(tensor: torch.Tensor) -> TensorHandle:
    """Wrap ``tensor`` in a handle owned by the active scope.

    Outside any scope the handle is owned by the caller, who must dispose it.
    """
    scope = _current_scope.get()
    if scope is None:
        return TensorHandle(tensor)
    return scope.track(tensor)


def num_tensors() -> int:
    """Number of live (undisposed) tensor handles in this process."""
    return _REGISTRY.num_tensors()


def memory() -> MemoryInfo:
    return {
        "num_tensors": _REGISTRY.num_tensors(),
        "num_bytes": _REGISTRY.num_bytes(),
    }
