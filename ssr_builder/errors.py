"""Build failures.

Every error is fatal to the whole build. Each one keeps the offending subject
(entrypoint, route, path) as attributes so callers can report it.
"""

from __future__ import annotations


class BuilderError(Exception):
    """Base class for all build failures."""

    stage: str = "build"


class InvalidEntrypoint(BuilderError):
    stage = "entrypoint"

    def __init__(self, entrypoint: str, reason: str) -> None:
        self.entrypoint = entrypoint
        self.reason = reason
        super().__init__(f"Invalid entrypoint {entrypoint!r}: {reason}")


class ManifestReadError(BuilderError):
    stage = "manifest"

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not read {path}: {reason}")


class BuildScriptFailed(BuilderError):
    stage = "install"

    def __init__(self, command: list[str], returncode: int | None, detail: str = "") -> None:
        self.command = list(command)
        self.returncode = returncode
        msg = f"Command {' '.join(self.command)!r} failed"
        if returncode is not None:
            msg += f" with exit code {returncode}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class NoRoutesDiscovered(BuilderError):
    stage = "discover"

    def __init__(self, directory: str) -> None:
        self.directory = directory
        super().__init__(f"No serverless pages were built (looked in {directory})")


class PackageTooLarge(BuilderError):
    stage = "package"

    def __init__(self, route: str, size: int, limit: int) -> None:
        self.route = route
        self.size = size
        self.limit = limit
        super().__init__(
            f"Lambda for page {route!r} is {size} bytes, "
            f"{size - limit} bytes over the {limit} byte limit"
        )


class PackagingFailed(BuilderError):
    stage = "package"

    def __init__(self, subject: str, reason: str) -> None:
        self.subject = subject
        self.reason = reason
        super().__init__(f"Packaging failed for {subject!r}: {reason}")


class OutputKeyCollision(BuilderError):
    stage = "compose"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Two build outputs map to the same path {key!r}")
