"""Entrypoint validation and re-rooting of the uploaded tree."""

from __future__ import annotations

import posixpath
from collections.abc import Mapping

from ssr_builder.config import ENTRYPOINT_NAMES
from ssr_builder.errors import InvalidEntrypoint
from ssr_builder.pathmap import ROOT, PathMap, is_under, normalize_path, parent_directory


def validate_entrypoint(entrypoint: str, files: Mapping | None = None) -> str:
    """Return the normalized entrypoint or raise InvalidEntrypoint.

    The entrypoint must name a ``package.json`` or ``nuxt.config.js``; when
    *files* is given it must also be one of its keys.
    """
    try:
        path = normalize_path(entrypoint)
    except ValueError as exc:
        raise InvalidEntrypoint(entrypoint, str(exc)) from exc
    if posixpath.basename(path) not in ENTRYPOINT_NAMES:
        raise InvalidEntrypoint(
            entrypoint, f"expected a file named {' or '.join(ENTRYPOINT_NAMES)}"
        )
    if files is not None and path not in files:
        raise InvalidEntrypoint(entrypoint, "file not found in the deployment")
    return path


def entry_directory(entrypoint: str) -> str:
    return parent_directory(entrypoint)


def include_only_entry_directory(files: PathMap, directory: str) -> PathMap:
    if directory == ROOT:
        return files
    return files.filter(lambda p: is_under(p, directory))


def move_entry_directory_to_root(files: PathMap, directory: str) -> PathMap:
    """Strip ``directory/`` from every key.

    Call on the output of :func:`include_only_entry_directory`; keys outside
    *directory* are not expected here and raise ValueError.
    """
    if directory == ROOT:
        return files
    prefix = directory.rstrip("/") + "/"

    def strip(path: str) -> str:
        if not path.startswith(prefix):
            raise ValueError(f"{path!r} is outside {directory!r}")
        return path[len(prefix) :]

    return files.rekey(strip)
