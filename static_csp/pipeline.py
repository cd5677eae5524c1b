"""Header generation run: discover, process in parallel, aggregate, write, register routes."""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from static_csp.cloudflare.patterns import get_route_strategy
from static_csp.cloudflare.routes import CloudflareRoutesClient
from static_csp.config.loader import GeneratorSettings
from static_csp.csp.aggregator import HeaderAggregation, split_to_global_and_local
from static_csp.csp.extractor import HeaderRecord, create_file_processor
from static_csp.csp.policies import merge_with_default_policies
from static_csp.csp.serializer import build_csp_array, render_header_block
from static_csp.errors import ConfigurationError
from static_csp.files import WriteResult, append_headers_file, discover_html_files, read_document

logger = structlog.get_logger()


@dataclass
class GenerationReport:
    """Summary of one run."""

    documents: int
    aggregation: HeaderAggregation
    headers_file: WriteResult
    write_failures: list[WriteResult] = field(default_factory=list)
    routes: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.headers_file.ok and not self.write_failures


def render_headers(
    aggregation: HeaderAggregation,
    policies: Mapping[str, str],
    disable_policies: Iterable[str] | None = None,
) -> list[str]:
    """Headers-file blocks for every record, globals first."""
    disabled = list(disable_policies or ())
    return [
        render_header_block(record.web_path, build_csp_array(policies, disabled, record.csp_object))
        for record in aggregation.ordered()
    ]


async def process_documents(
    paths: Sequence[str | os.PathLike[str]],
    processor: Callable[[str], Callable[[str], HeaderRecord]],
    concurrency: int = 16,
) -> list[HeaderRecord]:
    """Process every document concurrently; results come back in input order."""
    semaphore = asyncio.Semaphore(concurrency)

    def _read_and_process(path: str) -> HeaderRecord:
        return processor(path)(read_document(path))

    async def _process(path: str | os.PathLike[str]) -> HeaderRecord:
        async with semaphore:
            return await asyncio.to_thread(_read_and_process, os.fspath(path))

    return list(await asyncio.gather(*(_process(path) for path in paths)))


async def run(
    settings: GeneratorSettings,
    *,
    cloudflare: CloudflareRoutesClient | None = None,
) -> GenerationReport:
    """Generate CSP headers for every page under ``settings.build_dir``.

    Pages are rewritten with nonces in place and header blocks are appended
    to the headers file. Write failures are reported, not raised.
    """
    start = time.perf_counter()

    build_dir = Path(settings.build_dir)
    if not build_dir.is_dir():
        raise ConfigurationError(f"Build directory not found: {settings.build_dir}")
    if settings.register_routes and cloudflare is None:
        raise ConfigurationError("register_routes is enabled but no Cloudflare client was provided")

    policies = merge_with_default_policies(settings.policies)

    paths = discover_html_files(build_dir, settings.exclude)
    logger.info("html_files_found", count=len(paths), build_dir=settings.build_dir)

    processor = create_file_processor(settings.build_dir, settings.disable_generated_policies)
    headers = await process_documents(paths, processor, settings.concurrency)

    write_failures = [
        header.write_result
        for header in headers
        if header.write_result is not None and not header.write_result.ok
    ]
    for failure in write_failures:
        logger.warning("document_write_failed", path=failure.path, error=failure.error)

    aggregation = split_to_global_and_local(headers)

    blocks = render_headers(aggregation, policies, settings.disable_policies)
    blocks.extend(render_header_block(path, policy) for path, policy in settings.extra_headers.items())
    headers_file = append_headers_file(settings.headers_path, blocks)
    if headers_file.ok:
        logger.info("headers_file_written", path=headers_file.path, blocks=len(blocks))
    else:
        logger.error("headers_file_write_failed", path=headers_file.path, error=headers_file.error)

    routes: list[str] = []
    if settings.register_routes:
        strategy = get_route_strategy(settings.route_strategy)
        routes = strategy(
            paths=paths,
            aggregation=aggregation,
            build_dir=settings.build_dir,
            host=settings.route_host,
        )
        await cloudflare.sync_routes(routes, settings.worker_script)

    elapsed = time.perf_counter() - start
    logger.info(
        "headers_generated",
        documents=len(headers),
        global_headers=len(aggregation.global_headers),
        local_headers=len(aggregation.local_headers),
        write_failures=len(write_failures),
        elapsed_seconds=round(elapsed, 2),
    )
    return GenerationReport(
        documents=len(headers),
        aggregation=aggregation,
        headers_file=headers_file,
        write_failures=write_failures,
        routes=routes,
        elapsed_seconds=elapsed,
    )
