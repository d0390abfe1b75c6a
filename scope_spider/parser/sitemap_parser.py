# File: scope_spider/parser/sitemap_parser.py
"""scope_spider.parser.sitemap_parser: Модуль для парсинга sitemap.xml и извлечения URL."""

from __future__ import annotations

from typing import List

from lxml import etree


def parse_sitemap(xml_content: str | bytes) -> List[str]:
    """Разбирает XML sitemap (urlset или sitemapindex) и возвращает URL из тегов <loc>.

    Args:
        xml_content: содержимое sitemap.xml.

    Returns:
        Список URL, найденных в <loc> тегах; пустой список для пустого
        или нераспознаваемого документа.
    """
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    if not data.strip():
        return []
    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError:
        return []
    if root is None:
        return []
    locs = root.findall(".//{*}loc")
    return [loc.text.strip() for loc in locs if loc.text and loc.text.strip()]
