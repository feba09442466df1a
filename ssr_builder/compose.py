"""Merge handlers and static files into the final deployment map."""

from __future__ import annotations

from ssr_builder.config import ASSET_NAMESPACE
from ssr_builder.pathmap import PathMap, join_path


def compose_output(
    handlers: PathMap,
    static_bundle: PathMap,
    static_passthrough: PathMap,
    entry_directory: str,
) -> PathMap:
    """Return ``handlers`` + re-keyed bundle + re-keyed ``static/`` files.

    Bundle files land under ``<entry dir>/_nuxt/``; passthrough files keep
    their ``static/...`` path below the entry directory. A key produced twice
    raises OutputKeyCollision.
    """
    bundle = static_bundle.rekey(lambda p: join_path(entry_directory, ASSET_NAMESPACE, p))
    passthrough = static_passthrough.rekey(lambda p: join_path(entry_directory, p))
    return handlers.merge(bundle, passthrough)
