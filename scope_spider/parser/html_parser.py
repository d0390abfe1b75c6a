# === FILE: scope_spider/parser/html_parser.py ===
"""HTML discovery for the crawler.

:func:`parse_html` turns a fetched document into a :class:`ParsedPage` that
lists raw attribute values exactly as they appear in the markup:

* hrefs        : every ``href`` attribute (``<a>``, ``<link>``, ``<area>``…).
* form_actions : every ``<form action="…">``.
* has_upload   : whether the page contains ``<input type="file">``.
* srcs         : every ``src`` attribute (scripts, frames, images…).

Relative resolution is left to the caller; ``url`` is the document URL the
values should be resolved against.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = ("ParsedPage", "parse_html")


@dataclass(slots=True)
class ParsedPage:
    """Raw link-bearing attributes of one HTML document."""

    url: str
    hrefs: list[str] = field(default_factory=list)
    form_actions: list[str] = field(default_factory=list)
    srcs: list[str] = field(default_factory=list)
    has_upload: bool = False


def _attr_values(soup: BeautifulSoup, attr: str, name: str | None = None) -> list[str]:
    values: list[str] = []
    for tag in soup.find_all(name, attrs={attr: True}):
        if not isinstance(tag, Tag):
            continue
        value = tag.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        if isinstance(value, str):
            values.append(value)
    return values


def parse_html(html: str, url: str) -> ParsedPage:
    """Parse *html* served from *url*."""
    soup = BeautifulSoup(html, "html.parser")
    upload = soup.find("input", attrs={"type": lambda t: isinstance(t, str) and t.lower() == "file"})
    return ParsedPage(
        url=url,
        hrefs=_attr_values(soup, "href"),
        form_actions=_attr_values(soup, "action", "form"),
        srcs=_attr_values(soup, "src"),
        has_upload=upload is not None,
    )
