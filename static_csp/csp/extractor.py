"""Per-document CSP extraction: nonce injection, inline style hashing, path scope."""

from __future__ import annotations

import itertools
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import structlog

from static_csp.csp.document import NONCE_SELECTORS, HtmlDocument, insert_nonce
from static_csp.csp.hashing import hash_values
from static_csp.csp.paths import classify_path
from static_csp.csp.policies import normalize_directive_key
from static_csp.files import WriteResult, write_document

logger = structlog.get_logger()

DocumentWriter = Callable[[str, str], WriteResult]


@dataclass
class HeaderRecord:
    """CSP contribution of one page, keyed by the web path it applies to."""

    web_path: str
    csp_object: dict[str, list[str]]
    is_global: bool
    write_result: WriteResult | None = field(default=None, compare=False, repr=False)


def create_file_processor(
    build_dir: str | os.PathLike[str],
    disable_generated_policies: Iterable[str] | None = None,
    write: DocumentWriter = write_document,
) -> Callable[[str], Callable[[str], HeaderRecord]]:
    """Build ``processor(path)(text) -> HeaderRecord``.

    Processing a document stamps the nonce on every script, stylesheet link,
    style element and styled element, hashes inline styles into ``styleSrc``
    (unless generation is disabled for it) and rewrites the file at *path*
    with the injected markup. ``scriptSrc`` is never populated here.
    """
    disabled = {normalize_directive_key(key) for key in disable_generated_policies or ()}

    def should_generate(key: str) -> bool:
        return key not in disabled

    def processor(path: str | os.PathLike[str]) -> Callable[[str], HeaderRecord]:
        def process(text: str) -> HeaderRecord:
            document = HtmlDocument.parse(text)
            for selector in NONCE_SELECTORS:
                insert_nonce(document, selector)

            style_hashes: list[str] = []
            if should_generate("styleSrc"):
                style_hashes = hash_values(itertools.chain(
                    (document.inner_content(el) for el in document.select_all("style")),
                    (document.get_attribute(el, "style") for el in document.select_all("[style]")),
                ))

            web_path, is_global = classify_path(path, build_dir)
            write_result = write(os.fspath(path), document.serialize())

            logger.debug(
                "document_processed",
                path=os.fspath(path),
                web_path=web_path,
                is_global=is_global,
                style_hashes=len(style_hashes),
            )
            return HeaderRecord(
                web_path=web_path,
                csp_object={"scriptSrc": [], "styleSrc": style_hashes},
                is_global=is_global,
                write_result=write_result,
            )

        return process

    return processor
