"""Dependency resolution over a module graph.

Starting from an entry module, the resolver scans each file for quoted
import/require specifiers, maps them to files under the project root and
walks the graph depth-first. The result lists every reachable module once,
in post-order of first discovery: a module always comes after the modules it
imports, so the generator can register them in that order without sorting.

Specifier scanning is textual (regular expressions, not a parser). A
specifier that appears inside a comment or a string literal is picked up as
if it were real code. This is a known limitation.
"""

import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from aerossr.bundling.filesystem import FileSystem, LocalFileSystem
from aerossr.bundling.options import BundleOptions
from aerossr.errors import DepthExceededError, ReadError, ResolutionError

logger = logging.getLogger("aerossr.bundler")

_SPECIFIER_RE = re.compile(
    r"""
      \brequire\s*\(\s*(['"])(?P<require>[^'"\n]+)\1\s*\)
    | \bimport\s*\(\s*(['"])(?P<dynamic>[^'"\n]+)\3\s*\)
    | \b(?:import|export)\b[^'";]*?\bfrom\s*(['"])(?P<from>[^'"\n]+)\5
    | \bimport\s*(['"])(?P<bare>[^'"\n]+)\7
    """,
    re.VERBOSE,
)
_SPECIFIER_GROUPS = ("require", "dynamic", "from", "bare")

# Files whose contents are data, never scanned for specifiers
_DATA_SUFFIXES = frozenset({".json"})


def scan_specifiers(source: str) -> tuple[str, ...]:
    """Return the quoted module specifiers in *source*, in source order.

    Recognized forms::

        require("x")        import("x")
        import a from "x"   import {a} from "x"   import "x"
        export * from "x"   export {a} from "x"

    Duplicates are dropped; the first occurrence decides the position.
    """
    seen: dict[str, None] = {}
    for match in _SPECIFIER_RE.finditer(source):
        for group in _SPECIFIER_GROUPS:
            value = match.group(group)
            if value:
                seen.setdefault(value.strip(), None)
                break
    return tuple(seen)


@dataclass(frozen=True, slots=True)
class Module:
    """A resolved module: its file, its source, and its outgoing edges.

    ``imports`` pairs each specifier found in the source with the file it
    resolved to. External specifiers are not listed.
    """

    path: Path
    source: str
    imports: tuple[tuple[str, Path], ...] = ()

    @property
    def import_map(self) -> dict[str, Path]:
        return dict(self.imports)


@dataclass(slots=True)
class _Frame:
    """A module being walked. Mutable during resolution only."""

    path: Path
    depth: int
    source: str
    pending: Iterator[str]
    imports: list[tuple[str, Path]] = field(default_factory=list)


class DependencyResolver:
    """Walks the static imports of an entry module.

    Usage::

        resolver = DependencyResolver("/srv/site", BundleOptions(max_depth=20))
        paths = await resolver.resolve("/srv/site/src/main.js")

    The resolver holds no per-call state; one instance can serve concurrent
    resolutions.
    """

    __slots__ = ("fs", "options", "root")

    def __init__(
        self,
        root: str | Path,
        options: BundleOptions | None = None,
        *,
        fs: FileSystem | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.options = options or BundleOptions()
        self.fs: FileSystem = fs or LocalFileSystem()

    # -- Public API --

    async def resolve(
        self,
        entry_path: str | Path,
        visited: set[Path] | None = None,
    ) -> tuple[Path, ...]:
        """Return every module reachable from *entry_path*, dependencies first."""
        modules = await self.resolve_graph(entry_path, visited)
        return tuple(module.path for module in modules)

    async def resolve_graph(
        self,
        entry_path: str | Path,
        visited: set[Path] | None = None,
    ) -> tuple[Module, ...]:
        """Resolve the graph under *entry_path* and return its modules.

        *visited* is owned by the caller. Paths already in it are neither
        read nor returned, which lets a caller resume or split a walk. The
        entry and every module discovered are added to it.
        """
        visited = set() if visited is None else visited
        entry = await self._absolute(entry_path)
        if entry in visited:
            return ()
        visited.add(entry)

        order: list[Module] = []
        stack = [await self._frame(entry, depth=1)]
        max_depth = self.options.max_depth

        while stack:
            frame = stack[-1]
            specifier = next(frame.pending, None)
            if specifier is None:
                stack.pop()
                order.append(Module(frame.path, frame.source, tuple(frame.imports)))
                continue

            target = await self.resolve_specifier(specifier, frame.path)
            if target is None:
                continue
            frame.imports.append((specifier, target))
            if target in visited:
                continue

            depth = frame.depth + 1
            if depth > max_depth:
                raise DepthExceededError(target, depth, max_depth)
            visited.add(target)
            stack.append(await self._frame(target, depth=depth))

        return tuple(order)

    async def resolve_entry(self, entry_point: str) -> Path:
        """Locate an entry point given relative to the project root.

        Tries the same candidates as an import specifier (literal path,
        added extensions, directory index).

        Raises ``ReadError`` if nothing matches and ``ResolutionError`` if
        the match lies outside the root.
        """
        if "\x00" in entry_point:
            raise ResolutionError(entry_point, reason="invalid character in path")
        found = await self._find(self.root / entry_point.lstrip("/"))
        if found is None:
            raise ReadError(entry_point, "entry point not found")
        return await self._checked(found, entry_point, None)

    async def resolve_specifier(self, specifier: str, importer: Path) -> Path | None:
        """Map *specifier*, imported by *importer*, to a file.

        Returns ``None`` for ignored and external specifiers. Raises
        ``ResolutionError`` for a relative or rooted specifier with no file.
        """
        if self._ignored(specifier):
            return None

        if specifier.startswith("."):
            base = importer.parent / specifier
        elif specifier.startswith("/"):
            base = self.root / specifier.lstrip("/")
        elif specifier.endswith(self.options.extensions):
            # Bare name with an explicit extension: next to the importer, then
            # under the root, otherwise left to the runtime.
            found = await self._find(importer.parent / specifier)
            if found is None:
                found = await self._find(self.root / specifier)
            if found is None:
                logger.debug("External module %r in %s", specifier, importer)
                return None
            return await self._checked(found, specifier, importer)
        else:
            logger.debug("External module %r in %s", specifier, importer)
            return None

        found = await self._find(base)
        if found is None:
            raise ResolutionError(specifier, importer, "no matching file")
        return await self._checked(found, specifier, importer)

    # -- Helpers --

    async def _absolute(self, path: str | Path) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        return await self.fs.resolve(candidate)

    def _ignored(self, specifier: str) -> bool:
        return any(pattern in specifier for pattern in self.options.ignore_patterns)

    async def _checked(
        self, found: Path, specifier: str, importer: Path | None
    ) -> Path | None:
        resolved = await self.fs.resolve(found)
        if not resolved.is_relative_to(self.root):
            raise ResolutionError(specifier, importer, "outside the project root")
        relative = resolved.relative_to(self.root).as_posix()
        if importer is not None and self._ignored(relative):
            return None
        return resolved

    async def _find(self, base: Path) -> Path | None:
        """Return the first existing candidate for *base*."""
        base = Path(os.path.normpath(base))
        candidates = [base]
        candidates.extend(Path(f"{base}{ext}") for ext in self.options.extensions)
        candidates.extend(base / f"index{ext}" for ext in self.options.extensions)
        for candidate in candidates:
            if await self.fs.is_file(candidate):
                return candidate
        return None

    async def _frame(self, path: Path, *, depth: int) -> _Frame:
        source = await self._read(path)
        specifiers = () if path.suffix in _DATA_SUFFIXES else scan_specifiers(source)
        return _Frame(path=path, depth=depth, source=source, pending=iter(specifiers))

    async def _read(self, path: Path) -> str:
        try:
            return await self.fs.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise ReadError(path, str(exc)) from exc
