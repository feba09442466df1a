"""npm/yarn runner for install and ``package.json`` scripts.

Uses `yarn` when the project ships a ``yarn.lock`` and yarn is installed,
otherwise `npm`. Every non-zero exit is raised as BuildScriptFailed.
"""

from __future__ import annotations

import json
import shutil
import subprocess
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from ssr_builder.config import MANIFEST_NAME, NPM_REGISTRY, NPM_TOKEN_ENV, NPMRC_NAME
from ssr_builder.errors import BuildScriptFailed
from ssr_builder.logging import get_logger

log = get_logger(__name__)


def _has(cmd: str) -> bool:
    return shutil.which(cmd) is not None


def _client(root: Path) -> str:
    if (root / "yarn.lock").exists() and _has("yarn"):
        return "yarn"
    return "npm"


def _run(cmd: list[str], cwd: Path) -> None:
    log.info("running %s", " ".join(cmd), extra={"stage": "install", "path": str(cwd)})
    try:
        proc = subprocess.run(cmd, cwd=cwd, check=False)
    except FileNotFoundError as exc:
        raise BuildScriptFailed(cmd, None, f"{cmd[0]} is not installed") from exc
    if proc.returncode != 0:
        raise BuildScriptFailed(cmd, proc.returncode)


class NpmRunner:
    """Production build runner."""

    def install(self, work_path: Path, args: Sequence[str] = ()) -> None:
        root = Path(work_path)
        _run([_client(root), "install", *args], root)

    def run_script(self, work_path: Path, script: str) -> bool:
        """Run *script* from ``package.json``; return False if it is not defined."""
        root = Path(work_path)
        pkg_path = root / MANIFEST_NAME
        pkg = json.loads(pkg_path.read_text(encoding="utf-8")) if pkg_path.exists() else {}
        if script not in (pkg.get("scripts") or {}):
            log.info("script %s not defined, skipping", script, extra={"stage": "build"})
            return False
        client = _client(root)
        cmd = [client, "run", script] if client == "yarn" else [client, "run-script", script]
        _run(cmd, root)
        return True


@contextmanager
def npm_credentials(work_path: Path, token: str | None) -> Iterator[Path | None]:
    """Provide registry credentials in ``.npmrc`` for the duration of the block.

    Without a token this does nothing. Otherwise the token line is written
    (appended to a user ``.npmrc`` if there is one) and the file is removed,
    or restored to its original content, on every exit path.
    """
    if not token:
        yield None
        return

    npmrc = Path(work_path) / NPMRC_NAME
    previous = npmrc.read_bytes() if npmrc.exists() else None
    line = f"{NPM_REGISTRY}:_authToken={token}"
    if previous:
        npmrc.write_bytes(previous.rstrip(b"\n") + b"\n" + line.encode("utf-8") + b"\n")
    else:
        npmrc.write_text(line, encoding="utf-8")
    log.info("found %s, created %s", NPM_TOKEN_ENV, NPMRC_NAME, extra={"stage": "install"})
    try:
        yield npmrc
    finally:
        if previous is None:
            npmrc.unlink(missing_ok=True)
        else:
            npmrc.write_bytes(previous)
