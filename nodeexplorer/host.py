"""Narrow interfaces to the UI host, plus the command registry.

The tree provider, drag/drop controller and commands only talk to the host
through ``Host``; ``nodeexplorer.console.ConsoleHost`` implements it for a
terminal and tests supply fakes.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Progress(Protocol):
    def report(self, increment: float = 0.0, message: str | None = None) -> None: ...


class Host(Protocol):
    def show_info(self, message: str) -> None: ...

    def show_error(self, message: str) -> None: ...

    async def write_clipboard(self, text: str) -> None: ...

    def open_terminal(self, name: str, command_line: str) -> None: ...

    def open_remote_window(self, remote_authority: str, reuse_window: bool) -> None: ...

    def open_remote_folder(self, folder_uri: str, force_new_window: bool) -> None: ...

    def open_external(self, url: str) -> bool: ...

    def show_document(self, name: str, text: str) -> None: ...

    async def with_progress(
        self,
        title: str,
        task: Callable[[Progress], Awaitable[T]],
        cancellable: bool = False,
    ) -> T: ...


class CommandRegistry:
    """Named commands, each taking zero or one tree-node argument."""

    def __init__(self) -> None:
        self._commands: dict[str, Callable[..., Awaitable[Any] | Any]] = {}

    def register(self, name: str, handler: Callable[..., Awaitable[Any] | Any]) -> Callable[[], None]:
        if name in self._commands:
            raise ValueError(f"command already registered: {name}")
        self._commands[name] = handler

        def dispose() -> None:
            self._commands.pop(name, None)

        return dispose

    def names(self) -> list[str]:
        return sorted(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    async def execute(self, name: str, *args: Any) -> Any:
        handler = self._commands.get(name)
        if handler is None:
            raise KeyError(f"unknown command: {name}")
        logger.debug("executing %s", name)
        result = handler(*args)
        if isinstance(result, Awaitable):
            return await result
        return result
