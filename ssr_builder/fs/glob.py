"""Collect build output from disk into a PathMap."""

from __future__ import annotations

from functools import cache
from pathlib import Path

from pathspec import PathSpec

from ssr_builder.pathmap import PathMap
from ssr_builder.types import FileFsRef


@cache
def _spec(pattern: str) -> PathSpec:
    return PathSpec.from_lines("gitwildmatch", [pattern])


def glob(pattern: str, base: Path) -> PathMap:
    """Map every regular file under *base* matching *pattern* to a FileFsRef.

    *pattern* uses gitignore wildcard rules; keys are relative to *base*.
    A missing *base* yields an empty map.
    """
    base = Path(base)
    if not base.is_dir():
        return PathMap()
    spec = _spec(pattern)
    entries = {}
    for fp in sorted(base.rglob("*")):
        if not fp.is_file():
            continue
        rel = fp.relative_to(base).as_posix()
        if spec.match_file(rel):
            entries[rel] = FileFsRef.from_path(fp)
    return PathMap(entries)
