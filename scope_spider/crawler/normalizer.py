# scope_spider/crawler/normalizer.py
"""
URL normalization: resolve references against the page they came from.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urldefrag, urljoin, urlsplit

__all__ = ["normalize_url"]

_SCHEMES = ("http", "https")


def normalize_url(raw: Optional[str], base: str) -> Optional[str]:
    """
    Resolve *raw* against *base* and drop the fragment.

    Returns None for empty input, non-HTTP(S) results (``mailto:``,
    ``javascript:``, ``data:``...) and anything :mod:`urllib.parse` rejects.
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    try:
        absolute = urljoin(base, raw)
        absolute, _ = urldefrag(absolute)
        parts = urlsplit(absolute)
        # .hostname validates bracketed IPv6 literals and ports
        if parts.scheme.lower() not in _SCHEMES or not parts.hostname:
            return None
        _ = parts.port
    except ValueError:
        return None
    return absolute
