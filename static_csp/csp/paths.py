"""Map built HTML file paths to the web paths their CSP header applies to."""

from __future__ import annotations

import os

INDEX_FILENAME = "index.html"


def _segments(path: str | os.PathLike[str]) -> list[str]:
    normalized = os.fspath(path).replace("\\", "/")
    return [part for part in normalized.split("/") if part not in ("", ".")]


def relative_parts(path: str | os.PathLike[str], build_dir: str | os.PathLike[str]) -> list[str]:
    """Split *path* into segments below *build_dir*.

    Raises ValueError when *path* is not a file inside *build_dir*.
    """
    root = _segments(build_dir)
    parts = _segments(path)
    if parts[: len(root)] != root or len(parts) == len(root):
        raise ValueError(f"{os.fspath(path)!r} is not inside build directory {os.fspath(build_dir)!r}")
    return parts[len(root):]


def classify_path(path: str | os.PathLike[str], build_dir: str | os.PathLike[str]) -> tuple[str, bool]:
    """Return ``(web_path, is_global)`` for a built page.

    ``index.html`` pages get an exact directory path (``/``, ``/a/``) and a
    local header. Any other page shares a wildcard header with its
    directory siblings (``/*``, ``/a/*``).

    >>> classify_path("build/a/b.html", "build")
    ('/a/*', True)
    """
    *dirs, filename = relative_parts(path, build_dir)
    web_dir = "/" + "".join(f"{d}/" for d in dirs)
    if filename == INDEX_FILENAME:
        return web_dir, False
    return f"{web_dir}*", True
