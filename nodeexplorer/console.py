"""Terminal implementation of the ``Host`` interface used by the CLI."""

from __future__ import annotations

import asyncio
import logging
import shlex
import shutil
import subprocess
import sys
import webbrowser
from collections.abc import Awaitable, Callable
from pathlib import PurePosixPath
from typing import TextIO, TypeVar

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")

CLIPBOARD_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("pbcopy",),
)


def highlight_document(name: str, text: str, style: str = "monokai", no_color: bool = False) -> str:
    """Render ``text`` with pygments, picking a lexer from the file name."""
    if no_color:
        return text
    try:
        lexer = get_lexer_for_filename(PurePosixPath(name).name, text)
    except ClassNotFound:
        lexer = TextLexer()
    return highlight(text, lexer, TerminalFormatter(style=style))


class ConsoleProgress:
    def __init__(self, title: str, stream: TextIO) -> None:
        self.title = title
        self.stream = stream
        self.percent = 0.0

    def report(self, increment: float = 0.0, message: str | None = None) -> None:
        self.percent = min(100.0, self.percent + increment)
        suffix = f" {message}" if message else ""
        self.stream.write(f"{self.title}: {self.percent:.0f}%{suffix}\n")
        self.stream.flush()


class ConsoleHost:
    def __init__(
        self,
        out: TextIO | None = None,
        err: TextIO | None = None,
        style: str = "monokai",
        no_color: bool = False,
    ) -> None:
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self.style = style
        self.no_color = no_color

    def show_info(self, message: str) -> None:
        self.err.write(f"{message}\n")

    def show_error(self, message: str) -> None:
        self.err.write(f"error: {message}\n")

    async def write_clipboard(self, text: str) -> None:
        for command in CLIPBOARD_COMMANDS:
            if shutil.which(command[0]) is None:
                continue
            proc = await asyncio.create_subprocess_exec(*command, stdin=asyncio.subprocess.PIPE)
            await proc.communicate(text.encode("utf-8"))
            if proc.returncode != 0:
                raise RuntimeError(f"{command[0]} exited with status {proc.returncode}")
            return
        raise RuntimeError("no clipboard tool found (install wl-copy, xclip or pbcopy)")

    def open_terminal(self, name: str, command_line: str) -> None:
        logger.info("opening terminal %s: %s", name, command_line)
        subprocess.run(shlex.split(command_line), check=False)

    def open_remote_window(self, remote_authority: str, reuse_window: bool) -> None:
        argv = ["code", "--remote", remote_authority]
        argv.append("--reuse-window" if reuse_window else "--new-window")
        subprocess.run(argv, check=True)

    def open_remote_folder(self, folder_uri: str, force_new_window: bool) -> None:
        argv = ["code", "--folder-uri", folder_uri]
        if force_new_window:
            argv.append("--new-window")
        subprocess.run(argv, check=True)

    def open_external(self, url: str) -> bool:
        return webbrowser.open(url)

    def show_document(self, name: str, text: str) -> None:
        self.out.write(highlight_document(name, text, style=self.style, no_color=self.no_color))
        self.out.flush()

    async def with_progress(
        self,
        title: str,
        task: Callable[[ConsoleProgress], Awaitable[T]],
        cancellable: bool = False,
    ) -> T:
        # Console progress has no cancel affordance either way.
        _ = cancellable
        return await task(ConsoleProgress(title, self.err))
