"""Per-route lambda assembly with a size ceiling and bounded fan-out."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait

from ssr_builder.config import HANDLER_NAME, PAGE_FILENAME, BuilderConfig
from ssr_builder.errors import PackageTooLarge
from ssr_builder.logging import get_logger
from ssr_builder.package.zip import create_lambda
from ssr_builder.pathmap import PathMap, join_path
from ssr_builder.types import HandlerPackage, RouteUnit

log = get_logger(__name__)

Packager = Callable[[Mapping, str, str], HandlerPackage]


def assemble_files(route: RouteUnit, launcher: PathMap) -> PathMap:
    return launcher.merge({PAGE_FILENAME: route.file})


def create_handler(
    route: RouteUnit,
    launcher: PathMap,
    entry_directory: str,
    config: BuilderConfig,
    packager: Packager = create_lambda,
) -> tuple[str, HandlerPackage]:
    """Package one route; return ``(output key, package)``.

    A file set larger than ``config.max_lambda_size`` is rejected before the
    packager is called; one exactly at the limit is accepted.
    """
    files = assemble_files(route, launcher)
    size = files.total_size()
    if size > config.max_lambda_size:
        raise PackageTooLarge(route.name, size, config.max_lambda_size)

    log.info('creating lambda for page: "%s"', route.name, extra={"route": route.name, "size": size})
    package = packager(files, HANDLER_NAME, config.runtime)
    log.info('created lambda for page: "%s"', route.name, extra={"route": route.name})
    return join_path(entry_directory, route.name), package


def create_handlers(
    routes: Sequence[RouteUnit],
    launcher: PathMap,
    entry_directory: str,
    config: BuilderConfig,
    packager: Packager = create_lambda,
) -> PathMap:
    """Package every route concurrently, at most ``config.max_workers`` at a time.

    The first failure cancels routes not yet started and is re-raised.
    """
    results: dict[str, HandlerPackage] = {}
    with ThreadPoolExecutor(
        max_workers=config.max_workers, thread_name_prefix="HandlerPackager"
    ) as executor:
        futures = [
            executor.submit(create_handler, route, launcher, entry_directory, config, packager)
            for route in routes
        ]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for fut in pending:
            fut.cancel()
        for fut in futures:
            if fut in done and (exc := fut.exception()) is not None:
                raise exc
        for fut in futures:
            key, package = fut.result()
            results[key] = package
    return PathMap(results)
