"""Read, normalize and write the project's ``package.json``.

Normalization is additive: it fills in missing dependency tables and the
``now-build`` hook, and never removes or overwrites what the user wrote.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from ssr_builder.config import BUILD_HOOK, DEFAULT_BUILD_COMMAND, MANIFEST_NAME
from ssr_builder.errors import ManifestReadError
from ssr_builder.types import PackageManifest
from ssr_builder.validator import validate_package_json


def read_manifest(files: Mapping) -> PackageManifest | None:
    """Parse ``package.json`` from *files*; ``None`` when there is none."""
    ref = files.get(MANIFEST_NAME)
    if ref is None:
        return None
    try:
        data = json.loads(ref.read_bytes().decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestReadError(MANIFEST_NAME, str(exc)) from exc
    validate_package_json(data, MANIFEST_NAME)
    return PackageManifest.model_validate(data)


def normalize_manifest(manifest: PackageManifest | Mapping | None) -> PackageManifest:
    if manifest is None:
        manifest = PackageManifest()
    elif not isinstance(manifest, PackageManifest):
        manifest = PackageManifest.model_validate(dict(manifest))

    if BUILD_HOOK in manifest.scripts:
        return manifest

    scripts = dict(manifest.scripts)
    # Delegate to the user's own build script when there is one.
    scripts[BUILD_HOOK] = "npm run build" if "build" in scripts else DEFAULT_BUILD_COMMAND
    return manifest.model_copy(update={"scripts": scripts})


def dump_manifest(manifest: PackageManifest) -> str:
    return json.dumps(manifest.ordered_dump(), indent=2)


def write_manifest(work_path: Path, manifest: PackageManifest) -> Path:
    path = Path(work_path) / MANIFEST_NAME
    path.write_text(dump_manifest(manifest), encoding="utf-8")
    return path
