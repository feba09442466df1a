"""Lambda zip packaging and output writing.

``create_lambda`` builds the executable package for one handler in memory:
- entries are sorted and carry a fixed timestamp, so equal inputs give equal
  bytes and digests;
- file modes are preserved, so executables stay executable.

``write_output`` lays a final PathMap out on disk, writing each handler as
``<key>.zip`` with a sibling ``.sha256`` file.
"""

from __future__ import annotations

import hashlib
import io
import re
import stat
import zipfile
from collections.abc import Mapping
from pathlib import Path

from ssr_builder.errors import PackagingFailed
from ssr_builder.types import HandlerPackage

_FIXED_DATE = (1980, 1, 1, 0, 0, 0)
_HANDLER_RE = re.compile(r"^[\w.-]+\.\w+$")


def _sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def create_lambda(files: Mapping, handler: str, runtime: str) -> HandlerPackage:
    """Zip *files* into a HandlerPackage invoked as *handler* on *runtime*.

    Parameters
    ----------
    files: Mapping
        Archive path -> FileRef.
    handler: str
        ``<module>.<export>``, e.g. ``now__launcher.launcher``.
    runtime: str
        Platform runtime identifier.

    Raises
    ------
    PackagingFailed
        On an empty file set, a malformed handler or runtime, or unreadable
        file content.
    """
    if not files:
        raise PackagingFailed(handler, "no files to package")
    if not _HANDLER_RE.match(handler or ""):
        raise PackagingFailed(handler, "handler must look like '<module>.<export>'")
    if not runtime:
        raise PackagingFailed(handler, "runtime is required")

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for name in sorted(files):
            ref = files[name]
            try:
                data = ref.read_bytes()
            except OSError as exc:
                raise PackagingFailed(name, f"cannot read file: {exc}") from exc
            info = zipfile.ZipInfo(name, date_time=_FIXED_DATE)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = (stat.S_IFREG | stat.S_IMODE(ref.mode)) << 16
            z.writestr(info, data)

    payload = buf.getvalue()
    return HandlerPackage(
        zip_bytes=payload,
        handler=handler,
        runtime=runtime,
        sha256=_sha256_bytes(payload),
        files=tuple(sorted(files)),
    )


def write_output(files: Mapping, outdir: Path) -> list[Path]:
    """Write a composed build output below *outdir*; return written paths."""
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for key in sorted(files):
        value = files[key]
        if isinstance(value, HandlerPackage):
            zip_path = outdir / f"{key}.zip"
            zip_path.parent.mkdir(parents=True, exist_ok=True)
            zip_path.write_bytes(value.zip_bytes)
            zip_path.with_suffix(".zip.sha256").write_text(value.sha256, encoding="utf-8")
            written.append(zip_path)
        else:
            target = outdir / key
            value.write_to(target)
            written.append(target)
    return written
