"""File-system collaborators: HTML discovery, document rewrite, headers file append.

Writes never raise. Each returns a ``WriteResult`` and the caller decides
whether a failure matters.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a best-effort write."""

    path: str
    ok: bool = True
    error: str | None = None


def _normalize_pattern(pattern: str) -> str:
    # Negated spelling ("!build/admin/**") is accepted for compatibility
    return pattern.strip().lstrip("!")


def _is_excluded(path: Path, build_dir: Path, patterns: list[str]) -> bool:
    full = path.as_posix()
    relative = path.relative_to(build_dir).as_posix()
    return any(
        fnmatch.fnmatch(full, pattern) or fnmatch.fnmatch(relative, pattern)
        for pattern in patterns
    )


def discover_html_files(build_dir: str | os.PathLike[str], exclude: Iterable[str] = ()) -> list[Path]:
    """Return every ``*.html`` file below *build_dir*, sorted, minus excluded paths.

    Exclude patterns are fnmatch globs matched against the path as found
    (``build/admin/*.html``) and against the path relative to the build
    directory (``admin/*.html``).
    """
    root = Path(build_dir)
    patterns = [_normalize_pattern(p) for p in exclude if p and p.strip()]
    found = sorted((p for p in root.rglob("*.html") if p.is_file()), key=lambda p: p.as_posix())
    kept = [p for p in found if not _is_excluded(p, root, patterns)]
    logger.info(
        "html_files_excluded",
        patterns=len(patterns),
        excluded=len(found) - len(kept),
    )
    return kept


def read_document(path: str | os.PathLike[str]) -> str:
    """Read *path* as UTF-8. Undecodable bytes become U+FFFD instead of failing the run."""
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()


def write_document(path: str | os.PathLike[str], text: str) -> WriteResult:
    """Overwrite *path* with *text*."""
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as exc:
        return WriteResult(path=os.fspath(path), ok=False, error=str(exc))
    return WriteResult(path=os.fspath(path))


def _ends_with_newline(path: Path) -> bool:
    with open(path, "rb") as f:
        f.seek(-1, os.SEEK_END)
        return f.read(1) == b"\n"


def append_headers_file(path: str | os.PathLike[str], blocks: Iterable[str]) -> WriteResult:
    """Append header blocks to the headers file, creating it if needed.

    Existing content is kept. If it does not end with a newline one is
    inserted first so the first appended path starts on its own line.
    """
    target = Path(path)
    text = "\n".join(blocks)
    if not text:
        return WriteResult(path=str(target))
    try:
        needs_break = target.exists() and target.stat().st_size > 0 and not _ends_with_newline(target)
        with open(target, "a", encoding="utf-8") as f:
            if needs_break:
                f.write("\n")
            f.write(text + "\n")
    except OSError as exc:
        return WriteResult(path=str(target), ok=False, error=str(exc))
    return WriteResult(path=str(target))
