from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from ssr_builder.compose import compose_output
from ssr_builder.config import BuilderConfig, parse_size
from ssr_builder.errors import OutputKeyCollision
from ssr_builder.package.zip import write_output
from ssr_builder.pathmap import PathMap
from ssr_builder.types import FileBlob, HandlerPackage


def _pkg(tag: str) -> HandlerPackage:
    return HandlerPackage(
        zip_bytes=tag.encode(), handler="now__launcher.launcher", runtime="nodejs8.10", sha256="ab" * 32
    )


def test_compose_rekeys_bundle_and_passthrough() -> None:
    handlers = PathMap({"api/pages/index": _pkg("index")})
    bundle = PathMap({"app.js": FileBlob(b"app"), "pages/index.js": FileBlob(b"i")})
    passthrough = PathMap({"static/favicon.ico": FileBlob(b"ico")})

    out = compose_output(handlers, bundle, passthrough, "api/pages")

    assert set(out) == {
        "api/pages/index",
        "api/pages/_nuxt/app.js",
        "api/pages/_nuxt/pages/index.js",
        "api/pages/static/favicon.ico",
    }
    assert out["api/pages/static/favicon.ico"] is passthrough["static/favicon.ico"]


def test_compose_at_root_has_no_dot_prefix() -> None:
    bundle = PathMap({"a.js": FileBlob(b"")})
    out = compose_output(PathMap({"index": _pkg("i")}), bundle, PathMap(), ".")
    assert set(out) == {"index", "_nuxt/a.js"}


def test_compose_detects_colliding_outputs() -> None:
    handlers = PathMap({"static/logo": _pkg("logo")})
    passthrough = PathMap({"static/logo": FileBlob(b"png")})

    with pytest.raises(OutputKeyCollision) as info:
        compose_output(handlers, PathMap(), passthrough, ".")
    assert info.value.key == "static/logo"


def test_write_output_lays_out_zips_and_files(tmp_path: Path) -> None:
    out = PathMap({"site/index": _pkg("zip!"), "site/_nuxt/app.js": FileBlob(b"app")})

    written = write_output(out, tmp_path)

    assert (tmp_path / "site" / "index.zip").read_bytes() == b"zip!"
    assert (tmp_path / "site" / "index.zip.sha256").read_text(encoding="utf-8") == "ab" * 32
    assert (tmp_path / "site" / "_nuxt" / "app.js").read_bytes() == b"app"
    assert len(written) == 2


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("5mb", 5 * 1024 * 1024),
        ("512kb", 512 * 1024),
        ("1 GB", 1024**3),
        ("100", 100),
        (2048, 2048),
        ("1.5mb", int(1.5 * 1024 * 1024)),
    ],
)
def test_parse_size(raw, expected: int) -> None:
    assert parse_size(raw) == expected


@pytest.mark.parametrize("raw", ["five megabytes", "-1mb", 0, "0kb", True])
def test_parse_size_rejects_garbage(raw) -> None:
    with pytest.raises(ValueError):
        parse_size(raw)


def test_config_defaults_and_validation() -> None:
    config = BuilderConfig()
    assert config.max_lambda_size == 5 * 1024 * 1024
    assert config.max_workers == 8
    assert BuilderConfig(max_lambda_size="1mb").max_lambda_size == 1024 * 1024

    with pytest.raises(ValidationError):
        BuilderConfig(max_workers=0)
    with pytest.raises(ValidationError):
        BuilderConfig(max_lambda_size="lots")


def test_config_from_env() -> None:
    env = {
        "NPM_AUTH_TOKEN": "tok",
        "SSR_BUILDER_MAX_LAMBDA_SIZE": "10mb",
        "SSR_BUILDER_MAX_WORKERS": "2",
    }
    config = BuilderConfig.from_env(env, runtime="nodejs18.x", max_workers=None)

    assert config.npm_auth_token == "tok"
    assert config.max_lambda_size == 10 * 1024 * 1024
    assert config.max_workers == 2
    assert config.runtime == "nodejs18.x"
    assert BuilderConfig.from_env({}).npm_auth_token is None
