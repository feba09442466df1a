from __future__ import annotations

import pytest

from ssr_builder.entrypoint import (
    entry_directory,
    include_only_entry_directory,
    move_entry_directory_to_root,
    validate_entrypoint,
)
from ssr_builder.errors import InvalidEntrypoint
from ssr_builder.pathmap import PathMap, join_path
from ssr_builder.static import exclude_static_directory, only_static_directory
from ssr_builder.types import FileBlob


def _store(*paths: str) -> PathMap:
    return PathMap({p: FileBlob(p.encode("utf-8")) for p in paths})


UPLOAD = _store(
    "package.json",
    "README.md",
    "api/pages/package.json",
    "api/pages/nuxt.config.js",
    "api/pages/pages/index.vue",
    "api/pages/static/favicon.ico",
    "api/pagesX/other.js",
    "web/api/pages/ghost.js",
)


@pytest.mark.parametrize(
    "entrypoint", ["package.json", "api/pages/package.json", "api/pages/nuxt.config.js"]
)
def test_validate_entrypoint_accepts_manifest_names(entrypoint: str) -> None:
    assert validate_entrypoint(entrypoint, UPLOAD) == entrypoint


@pytest.mark.parametrize(
    "entrypoint", ["api/pages/pages/index.vue", "/package.json", "../package.json", ""]
)
def test_validate_entrypoint_rejects_bad_names(entrypoint: str) -> None:
    with pytest.raises(InvalidEntrypoint) as info:
        validate_entrypoint(entrypoint, UPLOAD)
    assert info.value.entrypoint == entrypoint


def test_validate_entrypoint_requires_file_in_upload() -> None:
    with pytest.raises(InvalidEntrypoint, match="not found"):
        validate_entrypoint("missing/package.json", UPLOAD)
    # Without a file set only the name is checked
    assert validate_entrypoint("missing/package.json") == "missing/package.json"


def test_entry_directory() -> None:
    assert entry_directory("package.json") == "."
    assert entry_directory("api/pages/package.json") == "api/pages"


def test_include_only_entry_directory_respects_segment_boundaries() -> None:
    included = include_only_entry_directory(UPLOAD, "api/pages")

    assert set(included) == {
        "api/pages/package.json",
        "api/pages/nuxt.config.js",
        "api/pages/pages/index.vue",
        "api/pages/static/favicon.ico",
    }
    assert set(included) <= set(UPLOAD)
    assert all(k.startswith("api/pages/") for k in included)


def test_include_only_root_keeps_everything() -> None:
    assert include_only_entry_directory(UPLOAD, ".") == UPLOAD


def test_move_to_root_inverts_prefixing() -> None:
    included = include_only_entry_directory(UPLOAD, "api/pages")
    moved = move_entry_directory_to_root(included, "api/pages")

    assert "package.json" in moved and "pages/index.vue" in moved
    assert moved.rekey(lambda p: join_path("api/pages", p)) == included
    assert move_entry_directory_to_root(UPLOAD, ".") == UPLOAD


def test_move_to_root_before_include_is_refused() -> None:
    with pytest.raises(ValueError):
        move_entry_directory_to_root(UPLOAD, "api/pages")


def test_static_partition_scenario() -> None:
    files = _store("static/logo.png", "static/robots.txt", "pages/index.vue")

    assert set(exclude_static_directory(files)) == {"pages/index.vue"}
    assert set(only_static_directory(files)) == {"static/logo.png", "static/robots.txt"}


@pytest.mark.parametrize(
    "store",
    [
        _store(),
        _store("static/a", "static/b/c", "b"),
        _store("static", "staticfiles/x", "src/static/y", "static/z"),
        UPLOAD,
    ],
)
def test_static_partition_is_exact(store: PathMap) -> None:
    excluded = exclude_static_directory(store)
    only = only_static_directory(store)

    assert set(excluded) & set(only) == set()
    assert set(excluded) | set(only) == set(store)


def test_only_top_level_static_is_reserved() -> None:
    files = _store("static", "staticfiles/x", "src/static/y")
    assert len(only_static_directory(files)) == 0
