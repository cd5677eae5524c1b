"""Pure-function rendering of policy maps into CSP header text."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from static_csp.csp.policies import DIRECTIVE_KEYS

HEADER_NAME = "Content-Security-Policy"

_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")


def camel_case_to_kebab_case(value: str) -> str:
    """``scriptSrcElem`` -> ``script-src-elem``."""
    return _CAMEL_BOUNDARY_RE.sub(r"\1-\2", value).lower()


def build_csp_array(
    policies: Mapping[str, str],
    disable_policies: Iterable[str] | None,
    csp_object: Mapping[str, list[str]],
) -> list[str]:
    """Render one ``"<directive> <sources>;"`` string per emitted directive.

    Directives follow DIRECTIVE_KEYS order. A directive is skipped when it is
    disabled, or when it has neither generated tokens nor a default value.
    Generated tokens come before the default value.

    Example:
        >>> build_csp_array({"objectSrc": "'none'"}, [], {})
        ["object-src 'none';"]
    """
    disabled = set(disable_policies or ())
    directives = []
    for key in DIRECTIVE_KEYS:
        tokens = csp_object.get(key) or []
        default = policies.get(key) or ""
        if key in disabled or not (tokens or default):
            continue
        sources = f"{' '.join(tokens)} {default}".strip()
        directives.append(f"{camel_case_to_kebab_case(key)} {sources};")
    return directives


def render_header_block(web_path: str, directives: Iterable[str] | str) -> str:
    """Render a headers-file block for *web_path*.

    *directives* is either the list from build_csp_array or a literal
    policy string. A record with no emitted directives still gets a block,
    with an empty header value.
    """
    policy = directives if isinstance(directives, str) else " ".join(directives)
    return f"{web_path}\n  {HEADER_NAME}: {policy}"
