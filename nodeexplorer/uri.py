"""Resource locators for the remote filesystem tree.

A ``ts`` URI names one path on one peer: the authority is the tailnet name and
the first path segment is the peer's host name, e.g.
``ts://example.ts.net/box1/home/alice``.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, replace
from urllib.parse import quote, unquote, urlsplit

TS_SCHEME = "ts"
FILE_SCHEME = "file"

_MULTI_SLASH_RE = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Collapse duplicate slashes, ``.`` and ``..`` and drop any trailing slash."""
    if not path:
        return "/"
    normalized = posixpath.normpath("/" + path.lstrip("/"))
    return _MULTI_SLASH_RE.sub("/", normalized)


@dataclass(frozen=True)
class RemoteUri:
    scheme: str
    authority: str
    path: str

    @classmethod
    def parse(cls, text: str) -> RemoteUri:
        """Parse ``scheme://authority/path``; the path is percent-decoded."""
        parts = urlsplit(text.strip())
        if not parts.scheme:
            raise ValueError(f"not a URI: {text!r}")
        return cls(scheme=parts.scheme, authority=parts.netloc, path=unquote(parts.path) or "/")

    @classmethod
    def for_host(cls, tailnet_name: str, host_name: str, *segments: str) -> RemoteUri:
        """Build a ``ts`` URI for ``segments`` under ``host_name``'s filesystem."""
        return cls(TS_SCHEME, tailnet_name, "/").join_path(host_name, *segments)

    @classmethod
    def from_local_path(cls, path: str) -> RemoteUri:
        return cls(FILE_SCHEME, "", normalize_path(path))

    def __str__(self) -> str:
        return f"{self.scheme}://{self.authority}{quote(self.path, safe='/~')}"

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)

    @property
    def is_local(self) -> bool:
        return self.scheme == FILE_SCHEME

    def with_path(self, path: str) -> RemoteUri:
        return replace(self, path=path)

    def join_path(self, *segments: str) -> RemoteUri:
        """Append path segments, dropping empty ones and normalizing the result."""
        parts = [self.path]
        for segment in segments:
            parts.extend(piece for piece in segment.split("/") if piece)
        return self.with_path(normalize_path("/".join(parts)))

    def parent(self) -> RemoteUri:
        return self.with_path(posixpath.dirname(normalize_path(self.path)))


def parse_ts_uri(uri: RemoteUri) -> tuple[str | None, str | None]:
    """Split a ``ts`` URI into ``(hostname, resource_path)``.

    ``resource_path`` is absolute (``/`` + remainder) except for ``~`` and ``~/...``,
    which pass through so the remote side expands them. Either value is
    ``None`` when the URI does not carry it.
    """
    segments = [segment for segment in uri.path.split("/") if segment]
    if not segments:
        return None, None
    hostname, rest = segments[0], segments[1:]
    if not rest:
        return hostname, None
    resource_path = "/".join(rest)
    if resource_path == "~" or resource_path.startswith("~/"):
        return hostname, resource_path
    return hostname, "/" + resource_path
