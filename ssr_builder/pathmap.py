"""Immutable path-keyed file maps and POSIX path helpers.

A :class:`PathMap` is the value passed between every build stage. Keys are
normalized relative POSIX paths; each transformation returns a new map and
leaves its input untouched while sharing the underlying FileRefs.
"""

from __future__ import annotations

import os
import posixpath
from collections.abc import Callable, Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ssr_builder.errors import OutputKeyCollision
from ssr_builder.types import FileFsRef

ROOT = "."


def normalize_path(path: str) -> str:
    """Return *path* as a relative POSIX path, or raise ValueError.

    Backslashes become slashes and ``.`` segments are folded. Absolute paths,
    ``..`` segments and the empty path are rejected.
    """
    p = path.replace("\\", "/")
    if not p or p.startswith("/"):
        raise ValueError(f"Not a relative path: {path!r}")
    if ".." in p.split("/"):
        raise ValueError(f"Parent segments are not allowed: {path!r}")
    norm = posixpath.normpath(p)
    if norm == ROOT:
        raise ValueError(f"Path names no file: {path!r}")
    return norm


def join_path(*parts: str) -> str:
    """Join path segments, dropping the ``.`` root, and normalize."""
    kept = [p for p in parts if p and p != ROOT]
    if not kept:
        return ROOT
    return normalize_path(posixpath.join(*kept))


def parent_directory(path: str) -> str:
    return posixpath.dirname(path) or ROOT


def is_under(path: str, directory: str) -> bool:
    if directory == ROOT:
        return True
    return path.startswith(directory.rstrip("/") + "/")


class PathMap(Mapping[str, Any]):
    """Read-only mapping from relative path to FileRef (or HandlerPackage)."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, Any] | Iterable[tuple[str, Any]] = ()) -> None:
        items = entries.items() if isinstance(entries, Mapping) else entries
        data: dict[str, Any] = {}
        for key, ref in items:
            norm = normalize_path(key)
            if norm in data:
                raise OutputKeyCollision(norm)
            data[norm] = ref
        self._entries = MappingProxyType(data)

    @classmethod
    def from_directory(
        cls,
        root: Path,
        *,
        ignore: Iterable[str] = (".git",),
        exclude: Iterable[Path] = (),
    ) -> PathMap:
        """Snapshot every regular file below *root* as FileFsRefs.

        Top-level directories named in *ignore* are skipped, as is any
        directory that resolves to one of the *exclude* paths.
        """
        root = Path(root)
        skip = set(ignore)
        excluded = {Path(p).resolve() for p in exclude}
        entries = {}
        for dirpath, dirnames, filenames in os.walk(root):
            here = Path(dirpath)
            if here == root:
                dirnames[:] = [d for d in dirnames if d not in skip]
                filenames = [f for f in filenames if f not in skip]
            if excluded:
                dirnames[:] = [d for d in dirnames if (here / d).resolve() not in excluded]
            for name in sorted(filenames):
                fp = here / name
                if fp.is_file():
                    entries[fp.relative_to(root).as_posix()] = FileFsRef.from_path(fp)
        return cls(entries)

    def __getitem__(self, key: str) -> Any:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PathMap({sorted(self._entries)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._entries) == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def filter(self, predicate: Callable[[str], bool]) -> PathMap:
        return PathMap((k, v) for k, v in self._entries.items() if predicate(k))

    def rekey(self, fn: Callable[[str], str]) -> PathMap:
        """Return a map with every key passed through *fn*.

        Two keys mapping to the same new key raise OutputKeyCollision.
        """
        out: dict[str, Any] = {}
        for key, ref in self._entries.items():
            new_key = normalize_path(fn(key))
            if new_key in out:
                raise OutputKeyCollision(new_key)
            out[new_key] = ref
        return PathMap(out)

    def merge(self, *others: Mapping[str, Any]) -> PathMap:
        """Union of this map and *others*; shared keys raise OutputKeyCollision."""
        out = dict(self._entries)
        for other in others:
            for key, ref in other.items():
                if key in out:
                    raise OutputKeyCollision(key)
                out[key] = ref
        return PathMap(out)

    def total_size(self) -> int:
        return sum(ref.size for ref in self._entries.values())
