"""Fold per-document header records into global (wildcard) and local groups."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from static_csp.csp.extractor import HeaderRecord


@dataclass
class HeaderAggregation:
    """Global records (unique by web path) and local records, both in first-seen order."""

    global_headers: list[HeaderRecord] = field(default_factory=list)
    local_headers: list[HeaderRecord] = field(default_factory=list)

    def ordered(self) -> Iterator[HeaderRecord]:
        """Records in output order: globals first, then locals."""
        yield from self.global_headers
        yield from self.local_headers


def merge_csp_objects(
    existing: dict[str, list[str]], incoming: dict[str, list[str]]
) -> dict[str, list[str]]:
    """Key-wise concatenation, existing tokens first. No de-duplication."""
    merged: dict[str, list[str]] = {}
    for key in dict.fromkeys([*existing, *incoming]):
        merged[key] = [*existing.get(key, ()), *incoming.get(key, ())]
    return merged


def add_header(aggregation: HeaderAggregation, header: HeaderRecord) -> HeaderAggregation:
    """Fold one record into *aggregation*.

    A global record whose web path is already present is merged into the
    existing entry; the entry is replaced, never mutated.
    """
    if not header.is_global:
        aggregation.local_headers.append(header)
        return aggregation

    for index, current in enumerate(aggregation.global_headers):
        if current.web_path == header.web_path:
            aggregation.global_headers[index] = dataclasses.replace(
                current,
                csp_object=merge_csp_objects(current.csp_object, header.csp_object),
            )
            return aggregation

    aggregation.global_headers.append(header)
    return aggregation


def split_to_global_and_local(headers: Iterable[HeaderRecord]) -> HeaderAggregation:
    """Sequential fold over *headers* in input order."""
    aggregation = HeaderAggregation()
    for header in headers:
        add_header(aggregation, header)
    return aggregation
