"""Split a tree on the reserved top-level ``static/`` directory."""

from __future__ import annotations

from ssr_builder.config import STATIC_DIRECTORY
from ssr_builder.pathmap import PathMap, is_under


def _in_static(path: str) -> bool:
    return is_under(path, STATIC_DIRECTORY)


def exclude_static_directory(files: PathMap) -> PathMap:
    """Everything the build toolchain needs to see."""
    return files.filter(lambda p: not _in_static(p))


def only_static_directory(files: PathMap) -> PathMap:
    """Files copied through to the output as-is."""
    return files.filter(_in_static)
