"""Route-pattern strategies for registering pages with Cloudflare Workers.

A strategy receives the processed HTML paths and the aggregated header
records and returns URL patterns. ``page`` derives one route per built page,
``scope`` one route per header path (wildcards included).
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence

from static_csp.csp.aggregator import HeaderAggregation
from static_csp.csp.paths import INDEX_FILENAME, relative_parts

RouteStrategy = Callable[..., list[str]]


def _dedupe(patterns: list[str]) -> list[str]:
    return list(dict.fromkeys(patterns))


def page_route_patterns(
    *,
    paths: Sequence[str | os.PathLike[str]],
    aggregation: HeaderAggregation,
    build_dir: str | os.PathLike[str],
    host: str,
) -> list[str]:
    """One route per page; index pages match with and without the trailing slash."""
    origin = f"https://{host}"
    patterns: list[str] = []
    for path in paths:
        *dirs, filename = relative_parts(path, build_dir)
        if filename == INDEX_FILENAME:
            base = "/".join([origin, *dirs])
            patterns.extend([base, f"{base}/"])
        else:
            stem = filename[: -len(".html")] if filename.endswith(".html") else filename
            patterns.append("/".join([origin, *dirs, stem]))
    return _dedupe(patterns)


def scope_route_patterns(
    *,
    paths: Sequence[str | os.PathLike[str]],
    aggregation: HeaderAggregation,
    build_dir: str | os.PathLike[str],
    host: str,
) -> list[str]:
    """One route per header web path, globals first."""
    return _dedupe([f"https://{host}{record.web_path}" for record in aggregation.ordered()])


ROUTE_STRATEGIES: dict[str, RouteStrategy] = {
    "page": page_route_patterns,
    "scope": scope_route_patterns,
}


def get_route_strategy(name: str) -> RouteStrategy:
    try:
        return ROUTE_STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown route strategy: {name!r}") from None
