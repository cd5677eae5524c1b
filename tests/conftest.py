"""Shared test fixtures."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest
import structlog


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep CSP_/CLOUDFLARE_ variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith(("CSP_", "CLOUDFLARE_")):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo setup_logging() calls made by CLI tests."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    structlog.reset_defaults()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def build_dir(tmp_path) -> Path:
    """A small static site: root index, a blog index and two blog posts."""
    root = tmp_path / "build"
    (root / "blog").mkdir(parents=True)
    (root / "index.html").write_text(
        "<!DOCTYPE html><html><head><title>Home</title>"
        '<script src="/app.js"></script></head><body><p>hi</p></body></html>',
        encoding="utf-8",
    )
    (root / "blog" / "index.html").write_text(
        '<html><head><link rel="stylesheet" href="/blog.css"></head><body></body></html>',
        encoding="utf-8",
    )
    (root / "blog" / "post.html").write_text(
        "<html><head><style>color:red</style></head><body></body></html>",
        encoding="utf-8",
    )
    (root / "blog" / "other.html").write_text(
        '<html><body><div style="margin:0">x</div></body></html>',
        encoding="utf-8",
    )
    return root
