"""Hydra ConfigStore registration for instantiable classes."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from hydra.core.config_store import ConfigStore
from loguru import logger

T = TypeVar("T", bound=type)


def register(
    *,
    group: str,
    name: str | None = None,
    **defaults: Any,
) -> Callable[[T], T]:
    """Class decorator storing a ``{"_target_": ...}`` node in Hydra's ConfigStore.

    The node lets a config select the class by name, e.g. ``model: landmark68``
    in a defaults list, and ``hydra.utils.instantiate(cfg.model)`` builds it.

    Arguments:
        group: ConfigStore group (``cfg.<group>`` after composition).
        name: Config name within the group. Defaults to the class name.
        **defaults: Constructor arguments stored on the node.
    """

    def _store(target_cls: T) -> T:
        config_name = name or target_cls.__name__
        node: dict[str, Any] = {
            "_target_": f"{target_cls.__module__}.{target_cls.__qualname__}"
        }
        node.update(defaults)
        logger.debug(
            f"Registering {target_cls.__name__} as '{config_name}' in group '{group}'"
        )
        ConfigStore.instance().store(group=group, name=config_name, node=node)
        return target_cls

    return _store
