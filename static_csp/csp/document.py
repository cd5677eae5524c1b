"""Minimal mutable HTML document model and nonce injection.

The CSP engine needs six operations on a page: parse, select-all by CSS
selector, read inner content, read/write an attribute, and serialize.
``HtmlDocument`` exposes exactly those on top of BeautifulSoup so the rest of
the package never touches the parser API directly.
"""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.element import Tag
from bs4.formatter import HTMLFormatter

# Static nonce stamped on every inline-capable element. Identical across
# documents and builds.
NONCE_VALUE = "41SWRENqnTUAb6n3"

NONCE_SELECTORS: tuple[str, ...] = (
    "script",
    "link[rel=stylesheet]",
    "style",
    "[style]",
)


def _normalize_newlines(value: str) -> str:
    # Browsers hash inline content after converting CR and CRLF to LF
    return value.replace("\r\n", "\n").replace("\r", "\n")


class _SourceOrderFormatter(HTMLFormatter):
    """HTML formatter that keeps attributes in source order.

    The stock formatters sort attributes alphabetically, which would rewrite
    every tag in the page rather than only the ones gaining a nonce.
    """

    def attributes(self, tag):
        if tag.attrs is None:
            return []
        return [
            (key, None if self.empty_attributes_are_booleans and value == "" else value)
            for key, value in tag.attrs.items()
        ]


_FORMATTER = _SourceOrderFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
    empty_attributes_are_booleans=True,
)


class HtmlDocument:
    """A parsed HTML page that can be queried, mutated and written back."""

    def __init__(self, soup: BeautifulSoup):
        self._soup = soup

    @classmethod
    def parse(cls, text: str) -> HtmlDocument:
        """Parse markup leniently; malformed HTML never raises."""
        return cls(BeautifulSoup(text, "html.parser"))

    def select_all(self, selector: str) -> list[Tag]:
        return self._soup.select(selector)

    @staticmethod
    def inner_content(element: Tag) -> str:
        """Raw inner markup with newlines normalized; ``<style>``/``<script>`` bodies are unescaped."""
        return _normalize_newlines(element.decode_contents())

    @staticmethod
    def get_attribute(element: Tag, name: str) -> str | None:
        value = element.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        if value is None:
            return None
        return _normalize_newlines(value)

    @staticmethod
    def set_attribute(element: Tag, name: str, value: str) -> None:
        element[name] = value

    def serialize(self) -> str:
        return self._soup.decode(formatter=_FORMATTER)


def insert_nonce(document: HtmlDocument, selector: str, nonce: str = NONCE_VALUE) -> int:
    """Set the ``nonce`` attribute on every element matching *selector*.

    Returns the number of elements stamped.
    """
    elements = document.select_all(selector)
    for element in elements:
        document.set_attribute(element, "nonce", nonce)
    return len(elements)
