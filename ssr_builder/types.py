"""Shared file references, pydantic models and build products."""

from __future__ import annotations

import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

DEFAULT_MODE = 0o100644


class FileRef(Protocol):
    """Immutable handle to file content.

    A FileRef may sit in several PathMaps at once; it is never mutated.
    """

    mode: int

    @property
    def size(self) -> int: ...

    def read_bytes(self) -> bytes: ...

    def write_to(self, dest: Path) -> None: ...


def _is_executable(mode: int) -> bool:
    return bool(mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))


def _finish(dest: Path, mode: int) -> None:
    os.chmod(dest, stat.S_IMODE(mode))


@dataclass(frozen=True)
class FileFsRef:
    fs_path: Path
    mode: int = DEFAULT_MODE

    @classmethod
    def from_path(cls, path: Path) -> FileFsRef:
        return cls(fs_path=Path(path), mode=Path(path).stat().st_mode)

    @property
    def size(self) -> int:
        return self.fs_path.stat().st_size

    @property
    def is_executable(self) -> bool:
        return _is_executable(self.mode)

    def read_bytes(self) -> bytes:
        return self.fs_path.read_bytes()

    def write_to(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self.fs_path, dest)
        _finish(dest, self.mode)


@dataclass(frozen=True)
class FileBlob:
    data: bytes
    mode: int = DEFAULT_MODE

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_executable(self) -> bool:
        return _is_executable(self.mode)

    def read_bytes(self) -> bytes:
        return self.data

    def write_to(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.data)
        _finish(dest, self.mode)


@dataclass(frozen=True)
class FileUrlRef:
    """Remote file content, fetched on demand."""

    url: str
    size: int
    mode: int = DEFAULT_MODE
    timeout: float = 60.0

    @property
    def is_executable(self) -> bool:
        return _is_executable(self.mode)

    def read_bytes(self) -> bytes:
        r = httpx.get(self.url, timeout=self.timeout, follow_redirects=True)
        r.raise_for_status()
        return r.content

    def write_to(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with httpx.stream("GET", self.url, timeout=self.timeout, follow_redirects=True) as r:
            r.raise_for_status()
            with open(dest, "wb") as out:
                for chunk in r.iter_bytes():
                    out.write(chunk)
        _finish(dest, self.mode)


@dataclass(frozen=True)
class RouteUnit:
    """One compiled page; ``name`` is its relative path without ``.js``."""

    name: str
    file: FileRef


@dataclass(frozen=True)
class HandlerPackage:
    """Executable deployment unit produced by the packaging collaborator."""

    zip_bytes: bytes
    handler: str
    runtime: str
    sha256: str
    files: tuple[str, ...] = ()

    @property
    def size(self) -> int:
        return len(self.zip_bytes)


class PackageManifest(BaseModel):
    """The fields of ``package.json`` the build relies on.

    Unknown keys (name, version, engines, ...) are kept as extras so that
    writing the manifest back never drops user data.
    """

    model_config = ConfigDict(extra="allow")

    dependencies: dict[str, str] = Field(default_factory=dict)
    devDependencies: dict[str, str] = Field(default_factory=dict)
    scripts: dict[str, str] = Field(default_factory=dict)
    # Key order of the parsed document, kept across model_copy.
    _key_order: tuple[str, ...] = PrivateAttr(default=())

    @model_validator(mode="wrap")
    @classmethod
    def _remember_key_order(cls, data, handler):
        model = handler(data)
        if isinstance(data, dict):
            model._key_order = tuple(data)
        return model

    def ordered_dump(self) -> dict:
        """``model_dump`` with the parsed key order first and new keys last."""
        dumped = self.model_dump()
        out = {k: dumped[k] for k in self._key_order if k in dumped}
        out.update((k, v) for k, v in dumped.items() if k not in out)
        return out
