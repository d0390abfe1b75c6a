# File: scope_spider/extractors.py
"""Artifact scanners over raw response text.

All scanners are total functions: any input string is accepted and an
empty list is returned when nothing matches. Results keep the order of
first appearance and contain no duplicates.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List
from urllib.parse import unquote

from scope_spider.patterns import (
    AWS_S3,
    LINKFINDER,
    LINKFINDER_SPLIT_THRESHOLD,
    SUBDOMAIN_PREFIX,
)

__all__ = ["decode_chars", "find_subdomains", "find_aws_s3", "find_links"]

_JSON_ESCAPES = (("\\u002f", "/"), ("\\u002F", "/"), ("\\u0026", "&"))


def _unique(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(item for item in items if item))


def decode_chars(text: str) -> str:
    """Percent-decode *text* and undo the JSON escapes commonly used for URLs."""
    try:
        text = unquote(text, errors="strict")
    except UnicodeDecodeError:
        pass
    for escaped, plain in _JSON_ESCAPES:
        text = text.replace(escaped, plain)
    return text


@lru_cache(maxsize=32)
def _subdomain_re(domain: str) -> re.Pattern[str]:
    # the domain must end the hostname: "api.example.community" is not under example.com
    return re.compile(SUBDOMAIN_PREFIX + re.escape(domain) + r"(?![a-z0-9_-])", re.IGNORECASE)


def _clean_subdomain(value: str) -> str:
    value = value.strip().lower()
    value = value.lstrip(".")
    if value.startswith("*."):
        value = value[2:]
    return value


def find_subdomains(text: str, domain: str) -> List[str]:
    """Return hostnames under *domain* mentioned anywhere in *text*."""
    if not text or not domain:
        return []
    matches = (_clean_subdomain(m.group(0)) for m in _subdomain_re(domain.lower()).finditer(text))
    return _unique(m for m in matches if m != domain.lower())


def find_aws_s3(text: str) -> List[str]:
    """Return S3 bucket hostnames and path-style bucket references."""
    if not text:
        return []
    return _unique(m.group(0) for m in AWS_S3.finditer(text))


def find_links(script: str) -> List[str]:
    """Return endpoint-like string literals found in JavaScript source."""
    if not script:
        return []
    if len(script) > LINKFINDER_SPLIT_THRESHOLD:
        script = script.replace(";", ";\r\n").replace(",", ",\r\n")
    return _unique(m.group(1).strip() for m in LINKFINDER.finditer(script))
