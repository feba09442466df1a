"""Nuxt buildpack: where the compiled output lives and what boots it.

After ``nuxt build`` the work directory contains
- ``.nuxt/dist/client/pages/**/*.js``: one compiled module per page, and
- ``.nuxt/dist/client/**``: the client bundle served under ``_nuxt/``.

Each page becomes a lambda made of the page module plus two bootstrap files,
the launcher and the bridge. Both ship with this package; the bridge can be
replaced through ``BuilderConfig.bridge_path``.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path

from ssr_builder.config import (
    BRIDGE_FILENAME,
    LAUNCHER_FILENAME,
    RESERVED_PAGES,
    ROUTES_DIRECTORY,
    STATIC_BUNDLE_DIRECTORY,
    BuilderConfig,
)
from ssr_builder.errors import NoRoutesDiscovered, PackagingFailed
from ssr_builder.fs.glob import glob
from ssr_builder.logging import get_logger
from ssr_builder.pathmap import PathMap
from ssr_builder.types import FileBlob, FileFsRef, RouteUnit

log = get_logger(__name__)


def _route_name(page: str) -> str:
    return page[: -len(".js")] if page.endswith(".js") else page


def discover_routes(work_path: Path) -> list[RouteUnit]:
    """Return the routable pages, sorted by name.

    Framework shells (``_app``, ``_error``, ``_document``) never become
    routes and do not count towards the required minimum of one.
    """
    pages = glob("**/*.js", Path(work_path) / ROUTES_DIRECTORY)
    routes = [
        RouteUnit(name=_route_name(page), file=ref)
        for page, ref in sorted(pages.items())
        if page not in RESERVED_PAGES
    ]
    if not routes:
        raise NoRoutesDiscovered(ROUTES_DIRECTORY)
    log.info(
        "discovered %d routes (%d compiled pages)",
        len(routes),
        len(pages),
        extra={"stage": "discover"},
    )
    return routes


def discover_static_bundle(work_path: Path) -> PathMap:
    return glob("**", Path(work_path) / STATIC_BUNDLE_DIRECTORY)


def _bundled(name: str) -> FileBlob:
    source = resources.files("ssr_builder.buildpacks.launcher").joinpath(name)
    try:
        return FileBlob(data=source.read_bytes())
    except OSError as exc:
        raise PackagingFailed(name, str(exc)) from exc


def _bridge_ref(work_path: Path, config: BuilderConfig):
    override = config.resolve_bridge(work_path)
    if override is None:
        return _bundled(BRIDGE_FILENAME)
    if not override.is_file():
        raise PackagingFailed(BRIDGE_FILENAME, f"bridge not found at {override}")
    return FileFsRef.from_path(override)


def launcher_files(work_path: Path, config: BuilderConfig) -> PathMap:
    """Bootstrap files shared by every lambda."""
    return PathMap(
        {
            BRIDGE_FILENAME: _bridge_ref(work_path, config),
            LAUNCHER_FILENAME: _bundled(LAUNCHER_FILENAME),
        }
    )
