"""Build orchestration: entrypoint → download → npm → pages → lambdas → output."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from ssr_builder.buildpacks.nuxt import discover_routes, discover_static_bundle, launcher_files
from ssr_builder.compose import compose_output
from ssr_builder.config import BUILD_HOOK, BuilderConfig
from ssr_builder.entrypoint import (
    entry_directory,
    include_only_entry_directory,
    move_entry_directory_to_root,
    validate_entrypoint,
)
from ssr_builder.fs.download import download
from ssr_builder.installer.npm import NpmRunner, npm_credentials
from ssr_builder.logging import get_logger
from ssr_builder.manifest import normalize_manifest, read_manifest, write_manifest
from ssr_builder.package.handlers import Packager, create_handlers
from ssr_builder.package.zip import create_lambda
from ssr_builder.pathmap import PathMap
from ssr_builder.static import exclude_static_directory, only_static_directory

log = get_logger(__name__)


class Materializer(Protocol):
    def __call__(self, files: PathMap, dest: Path) -> PathMap: ...


class BuildRunner(Protocol):
    def install(self, work_path: Path, args: Sequence[str] = ()) -> None: ...

    def run_script(self, work_path: Path, script: str) -> bool: ...


@dataclass
class Collaborators:
    """External services the pipeline drives; swapped for fakes in tests."""

    download: Materializer = download
    runner: BuildRunner = field(default_factory=NpmRunner)
    packager: Packager = create_lambda


@dataclass
class BuildContext:
    files: PathMap
    entrypoint: str
    work_path: Path
    config: BuilderConfig = field(default_factory=BuilderConfig)


def build_pipeline(ctx: BuildContext, collaborators: Collaborators | None = None) -> PathMap:
    """Run one build and return the deployment map.

    Any failure propagates; no partial output is returned.
    """
    c = collaborators or Collaborators()
    work_path = Path(ctx.work_path)
    work_path.mkdir(parents=True, exist_ok=True)

    log.info("entrypoint %s", ctx.entrypoint, extra={"stage": "entrypoint"})
    entrypoint = validate_entrypoint(ctx.entrypoint, ctx.files)
    entry_dir = entry_directory(entrypoint)
    files = move_entry_directory_to_root(
        include_only_entry_directory(ctx.files, entry_dir), entry_dir
    )

    log.info("downloading user files...", extra={"stage": "download"})
    downloaded = c.download(exclude_static_directory(files), work_path)

    manifest = normalize_manifest(read_manifest(downloaded))
    log.info("normalized package.json scripts: %s", manifest.scripts, extra={"stage": "manifest"})
    write_manifest(work_path, manifest)

    with npm_credentials(work_path, ctx.config.npm_auth_token):
        log.info("running npm install...", extra={"stage": "install"})
        c.runner.install(work_path, ["--prefer-offline"])
        log.info("running user script...", extra={"stage": "build"})
        c.runner.run_script(work_path, BUILD_HOOK)
        log.info("running npm install --production...", extra={"stage": "install"})
        c.runner.install(work_path, ["--prefer-offline", "--production"])

    log.info("preparing lambda files...", extra={"stage": "package"})
    routes = discover_routes(work_path)
    launcher = launcher_files(work_path, ctx.config)
    handlers = create_handlers(routes, launcher, entry_dir, ctx.config, c.packager)

    output = compose_output(
        handlers,
        discover_static_bundle(work_path),
        only_static_directory(files),
        entry_dir,
    )
    log.info("build produced %d outputs", len(output), extra={"stage": "compose"})
    return output
