"""Hash-based CSP source expressions for inline content."""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Iterable

HASH_ALGORITHM = "sha256"


def hash_source(value: str) -> str:
    """Return the ``'sha256-<base64>'`` source expression for *value*.

    The digest is taken over the UTF-8 bytes, which is what browsers hash
    when checking inline content against the policy.
    """
    digest = hashlib.new(HASH_ALGORITHM, value.encode("utf-8")).digest()
    return f"'{HASH_ALGORITHM}-{base64.b64encode(digest).decode('ascii')}'"


def hash_values(values: Iterable[str | None]) -> list[str]:
    """Hash each non-empty value, dropping duplicates but keeping first-seen order."""
    hashes: dict[str, None] = {}
    for value in values:
        if not value:
            continue
        hashes.setdefault(hash_source(value), None)
    return list(hashes)
