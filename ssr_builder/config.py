"""Builder configuration and the file names the platform protocol depends on."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

# --- Protocol constants -----------------------------------------------------

MANIFEST_NAME = "package.json"
ENTRYPOINT_NAMES = (MANIFEST_NAME, "nuxt.config.js")
BUILD_HOOK = "now-build"
DEFAULT_BUILD_COMMAND = "nuxt build"

STATIC_DIRECTORY = "static"
ASSET_NAMESPACE = "_nuxt"
ROUTES_DIRECTORY = ".nuxt/dist/client/pages"
STATIC_BUNDLE_DIRECTORY = ".nuxt/dist/client"
RESERVED_PAGES = frozenset({"_app.js", "_error.js", "_document.js"})

BRIDGE_FILENAME = "now__bridge.js"
LAUNCHER_FILENAME = "now__launcher.js"
PAGE_FILENAME = "page.js"
HANDLER_NAME = "now__launcher.launcher"
DEFAULT_RUNTIME = "nodejs8.10"

NPMRC_NAME = ".npmrc"
NPM_REGISTRY = "//registry.npmjs.org/"
NPM_TOKEN_ENV = "NPM_AUTH_TOKEN"

DEFAULT_MAX_LAMBDA_SIZE = "5mb"

# --- Size parsing -----------------------------------------------------------

_UNITS = {"b": 1, "kb": 1024, "mb": 1024**2, "gb": 1024**3}
_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmg]?b)?\s*$", re.IGNORECASE)


def parse_size(value: int | str) -> int:
    """Turn ``5242880``, ``"5mb"`` or ``"512 KB"`` into a byte count."""
    if isinstance(value, bool):
        raise ValueError("size must be a number or a string such as '5mb'")
    if isinstance(value, int):
        if value <= 0:
            raise ValueError("size must be positive")
        return value
    m = _SIZE_RE.match(str(value))
    if not m:
        raise ValueError(f"Unrecognized size: {value!r}")
    number, unit = m.groups()
    size = int(float(number) * _UNITS[(unit or "b").lower()])
    if size <= 0:
        raise ValueError("size must be positive")
    return size


class BuilderConfig(BaseModel):
    max_lambda_size: int = Field(default=parse_size(DEFAULT_MAX_LAMBDA_SIZE))
    max_workers: int = Field(default=8, ge=1)
    runtime: str = DEFAULT_RUNTIME
    npm_auth_token: str | None = None
    # Overrides the bundled bridge; relative paths resolve against the work directory.
    bridge_path: Path | None = None

    @field_validator("max_lambda_size", mode="before")
    @classmethod
    def _parse_max_lambda_size(cls, v: int | str) -> int:
        return parse_size(v)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> BuilderConfig:
        env = os.environ if environ is None else environ
        values: dict = {}
        if env.get(NPM_TOKEN_ENV):
            values["npm_auth_token"] = env[NPM_TOKEN_ENV]
        if env.get("SSR_BUILDER_MAX_LAMBDA_SIZE"):
            values["max_lambda_size"] = env["SSR_BUILDER_MAX_LAMBDA_SIZE"]
        if env.get("SSR_BUILDER_MAX_WORKERS"):
            values["max_workers"] = env["SSR_BUILDER_MAX_WORKERS"]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def resolve_bridge(self, work_path: Path) -> Path | None:
        if self.bridge_path is None:
            return None
        if self.bridge_path.is_absolute():
            return self.bridge_path
        return Path(work_path) / self.bridge_path
