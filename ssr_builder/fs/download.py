"""Materialize a PathMap onto local disk."""

from __future__ import annotations

from pathlib import Path

from ssr_builder.logging import get_logger
from ssr_builder.pathmap import PathMap
from ssr_builder.types import FileFsRef

log = get_logger(__name__)


def download(files: PathMap, dest: Path) -> PathMap:
    """Write every entry of *files* below *dest*.

    Returns a PathMap with the same keys pointing at the written files. Local
    files already sitting at their destination are not copied again.
    """
    dest = Path(dest)
    dest.mkdir(parents=True, exist_ok=True)
    out: dict[str, FileFsRef] = {}
    for rel, ref in sorted(files.items()):
        target = dest / rel
        if isinstance(ref, FileFsRef) and ref.fs_path.resolve() == target.resolve():
            out[rel] = ref
            continue
        ref.write_to(target)
        out[rel] = FileFsRef(fs_path=target, mode=ref.mode)
    log.info("materialized %d files", len(out), extra={"stage": "download", "path": str(dest)})
    return PathMap(out)
