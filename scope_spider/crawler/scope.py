# scope_spider/crawler/scope.py
"""
Scope filter: decides whether a URL stays inside the crawl boundary.

By default the domain token is matched literally anywhere in the URL, so
``api.example.com`` and ``https://x.org/?u=example.com`` both pass for
``example.com``. With subdomains enabled the check is anchored to the host:
it must be the domain itself or end in ``.domain``.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern, Sequence
from urllib.parse import urlsplit

from scope_spider.patterns import DEFAULT_BLACKLIST

__all__ = ["ScopeFilter", "in_scope", "domain_pattern", "host_in_domain", "fix_scheme_relative"]


def fix_scheme_relative(url: str, scheme: str = "https") -> str:
    """Give ``//host/path`` references an explicit scheme."""
    if url.startswith("//"):
        return f"{scheme}:{url}"
    return url


def domain_pattern(domain: str) -> Pattern[str]:
    """Literal, case-insensitive regex for the domain token."""
    return re.compile(re.escape(domain), re.IGNORECASE)


def host_in_domain(url: str, domain: str) -> bool:
    """True iff the host of *url* is *domain* or one of its subdomains."""
    try:
        host = urlsplit(fix_scheme_relative(url)).hostname
    except ValueError:
        return False
    if not host:
        return False
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


def in_scope(url: str, domain_re: Pattern[str], blacklist: Sequence[Pattern[str]]) -> bool:
    """True iff *url* matches *domain_re* and none of *blacklist*."""
    if not url:
        return False
    url = fix_scheme_relative(url)
    if not domain_re.search(url):
        return False
    return not any(pattern.search(url) for pattern in blacklist)


class ScopeFilter:
    """Immutable bundle of a domain token and blacklist patterns."""

    __slots__ = ("domain", "domain_re", "include_subdomains", "blacklist")

    def __init__(
        self,
        domain: str,
        extra_blacklist: Optional[Iterable[str]] = None,
        include_subdomains: bool = False,
    ) -> None:
        self.domain = domain.lower()
        self.domain_re = domain_pattern(self.domain)
        self.include_subdomains = include_subdomains
        patterns: List[Pattern[str]] = [re.compile(DEFAULT_BLACKLIST, re.IGNORECASE)]
        patterns.extend(re.compile(p) for p in extra_blacklist or () if p)
        self.blacklist = tuple(patterns)

    def matches_domain(self, url: str) -> bool:
        if self.include_subdomains:
            return host_in_domain(url, self.domain)
        return bool(self.domain_re.search(fix_scheme_relative(url)))

    def blacklisted(self, url: str) -> bool:
        url = fix_scheme_relative(url)
        return any(pattern.search(url) for pattern in self.blacklist)

    def __call__(self, url: str) -> bool:
        if not self.include_subdomains:
            return in_scope(url, self.domain_re, self.blacklist)
        return bool(url) and self.matches_domain(url) and not self.blacklisted(url)
