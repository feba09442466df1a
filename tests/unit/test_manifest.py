from __future__ import annotations

import json
from pathlib import Path

import pytest

from ssr_builder.config import BUILD_HOOK, DEFAULT_BUILD_COMMAND
from ssr_builder.errors import ManifestReadError
from ssr_builder.manifest import normalize_manifest, read_manifest, write_manifest
from ssr_builder.pathmap import PathMap
from ssr_builder.types import FileBlob, PackageManifest


def _files_with(package_json: str) -> PathMap:
    return PathMap({"package.json": FileBlob(package_json.encode("utf-8"))})


def test_missing_manifest_is_synthesized() -> None:
    m = normalize_manifest(None)
    assert m.dependencies == {}
    assert m.devDependencies == {}
    assert m.scripts == {BUILD_HOOK: DEFAULT_BUILD_COMMAND}


def test_manifest_without_scripts_gets_build_hook() -> None:
    """A manifest with no script table gains the hook and empty dependency tables."""
    m = normalize_manifest({"devDependencies": {"nuxt": "^2.0.0"}})

    assert BUILD_HOOK in m.scripts
    assert m.dependencies == {}
    assert m.model_dump()["dependencies"] == {}
    assert m.devDependencies == {"nuxt": "^2.0.0"}


def test_user_build_hook_is_never_overwritten() -> None:
    m = normalize_manifest({"scripts": {BUILD_HOOK: "make site", "start": "nuxt start"}})
    assert m.scripts == {BUILD_HOOK: "make site", "start": "nuxt start"}


def test_build_hook_delegates_to_existing_build_script() -> None:
    m = normalize_manifest({"scripts": {"build": "nuxt build --modern"}})
    assert m.scripts["build"] == "nuxt build --modern"
    assert m.scripts[BUILD_HOOK] == "npm run build"


@pytest.mark.parametrize(
    "raw",
    [
        None,
        {},
        {"scripts": {"dev": "nuxt"}},
        {"name": "site", "version": "1.0.0", "dependencies": {"nuxt": "2"}},
        {"scripts": {BUILD_HOOK: "custom"}},
    ],
)
def test_normalize_is_idempotent_and_additive(raw: dict | None) -> None:
    once = normalize_manifest(raw)
    assert normalize_manifest(once) == once

    original_scripts = (raw or {}).get("scripts", {})
    for key, value in original_scripts.items():
        assert once.scripts[key] == value
    for key in raw or {}:
        assert key in once.model_dump()


def test_unknown_fields_survive_normalization() -> None:
    m = normalize_manifest({"name": "site", "engines": {"node": "8.10"}})
    dumped = m.model_dump()
    assert dumped["name"] == "site"
    assert dumped["engines"] == {"node": "8.10"}


def test_read_manifest_absent_returns_none() -> None:
    assert read_manifest(PathMap()) is None


def test_read_manifest_parses_valid_file() -> None:
    m = read_manifest(_files_with('{"name": "x", "scripts": {"build": "nuxt build"}}'))
    assert isinstance(m, PackageManifest)
    assert m.scripts == {"build": "nuxt build"}


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        '["a", "list"]',
        '{"dependencies": ["nuxt"]}',
        '{"scripts": {"build": 1}}',
    ],
)
def test_read_manifest_rejects_unusable_files(content: str) -> None:
    with pytest.raises(ManifestReadError) as info:
        read_manifest(_files_with(content))
    assert info.value.path == "package.json"


def test_write_manifest_roundtrips_through_disk(tmp_path: Path) -> None:
    m = normalize_manifest({"name": "site"})
    path = write_manifest(tmp_path, m)

    text = path.read_text(encoding="utf-8")
    assert text.startswith("{\n  ")
    assert json.loads(text)["scripts"] == {BUILD_HOOK: DEFAULT_BUILD_COMMAND}


def test_write_manifest_keeps_the_user_key_order(tmp_path: Path) -> None:
    raw = json.dumps(
        {"name": "site", "version": "1.0.0", "scripts": {"dev": "nuxt"}, "engines": {"node": "8"}}
    )
    m = normalize_manifest(read_manifest(_files_with(raw)))

    written = json.loads(write_manifest(tmp_path, m).read_text(encoding="utf-8"))

    assert list(written) == [
        "name",
        "version",
        "scripts",
        "engines",
        "dependencies",
        "devDependencies",
    ]
    assert list(written["scripts"]) == ["dev", BUILD_HOOK]
