"""Built-in CSP directive set and the merge of caller policy overrides."""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType

# Rendering order of directives in the generated header.
DIRECTIVE_KEYS: tuple[str, ...] = (
    "defaultSrc",
    "childSrc",
    "connectSrc",
    "fontSrc",
    "frameSrc",
    "imgSrc",
    "manifestSrc",
    "mediaSrc",
    "objectSrc",
    "prefetchSrc",
    "scriptSrc",
    "scriptSrcElem",
    "scriptSrcAttr",
    "styleSrc",
    "styleSrcElem",
    "styleSrcAttr",
    "workerSrc",
    "baseUri",
    "formAction",
    "frameAncestors",
)

# An empty default means the directive is only emitted when hashes were generated for it.
DEFAULT_POLICIES: Mapping[str, str] = MappingProxyType({key: "" for key in DIRECTIVE_KEYS})

_KEBAB_SEGMENT_RE = re.compile(r"-([a-z0-9])")


def normalize_directive_key(key: str) -> str:
    """Return the camelCase spelling of a directive name.

    Accepts either ``object-src`` or ``objectSrc``.
    """
    key = key.strip()
    if "-" not in key:
        return key
    return _KEBAB_SEGMENT_RE.sub(lambda m: m.group(1).upper(), key.lower())


def merge_with_default_policies(overrides: Mapping[str, str] | None = None) -> Mapping[str, str]:
    """Overlay caller-supplied directive values on the built-in defaults.

    Keys outside DIRECTIVE_KEYS are carried through untouched; the serializer
    only looks at the enumerated set.
    """
    merged = dict(DEFAULT_POLICIES)
    merged.update(overrides or {})
    return MappingProxyType(merged)
