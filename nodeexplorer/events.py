"""Tree change signals and a minimal event emitter."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from .nodes import TreeNode

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RefreshAll:
    """The whole tree changed; the host re-requests from the root."""


@dataclass(frozen=True)
class RefreshNodes:
    """Only the subtrees under ``nodes`` changed."""

    nodes: tuple[TreeNode, ...]


TreeChange = RefreshAll | RefreshNodes


class EventEmitter(Generic[T]):
    def __init__(self) -> None:
        self._listeners: list[Callable[[T], object]] = []

    def subscribe(self, listener: Callable[[T], object]) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    def fire(self, event: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("change listener failed for %r", event)
