"""Filesystem capability used by the dependency resolver.

The resolver only needs three operations, so it depends on this small
protocol rather than on ``pathlib`` directly. Tests and embedders can supply
any object with the same shape.
"""

from pathlib import Path
from typing import Protocol

import anyio


class FileSystem(Protocol):
    """Read-only view of the files a bundle may reference."""

    async def read_text(self, path: Path) -> str: ...

    async def is_file(self, path: Path) -> bool: ...

    async def resolve(self, path: Path) -> Path:
        """Return the canonical form of *path*, following symlinks."""
        ...


class LocalFileSystem:
    """The real filesystem, read through ``anyio`` worker threads."""

    __slots__ = ("encoding",)

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    async def read_text(self, path: Path) -> str:
        return await anyio.Path(path).read_text(encoding=self.encoding)

    async def is_file(self, path: Path) -> bool:
        return await anyio.Path(path).is_file()

    async def resolve(self, path: Path) -> Path:
        return Path(await anyio.Path(path).resolve())
