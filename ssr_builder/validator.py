"""Schema validation for project manifests."""

from __future__ import annotations

import json
from functools import cache
from importlib import resources

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from ssr_builder.errors import ManifestReadError

# --- Schema loaders ---------------------------------------------------------


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


@cache
def _package_schema() -> dict:
    return _load_schema("ssr_builder.schema", "package.schema.json")


# --- Public validators ------------------------------------------------------


def validate_package_json(data: object, path: str = "package.json") -> None:
    """Raise ManifestReadError if *data* is not a usable ``package.json``."""
    try:
        Draft202012Validator(_package_schema()).validate(data)
    except ValidationError as exc:
        where = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ManifestReadError(path, f"{where}: {exc.message}") from exc
