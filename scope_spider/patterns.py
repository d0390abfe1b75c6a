# File: scope_spider/patterns.py
"""scope_spider.patterns: Регулярные выражения, используемые сканерами и фильтром области.

Шаблоны хранятся как данные: расширение списков не требует правки логики
в :mod:`scope_spider.extractors` и :mod:`scope_spider.crawler.scope`.
"""
from __future__ import annotations

import re
from typing import Final, FrozenSet

# Static assets that are never worth fetching.
DEFAULT_BLACKLIST: Final[str] = (
    r"\.(jpg|jpeg|gif|css|tif|tiff|png|ttf|woff|woff2|ico)(?:\?|#|$)"
)

# Label chain in front of the target domain: "api." / "dev.eu-1." ...
SUBDOMAIN_PREFIX: Final[str] = (
    r"(?:(?:[a-zA-Z0-9]|[_a-zA-Z0-9][_a-zA-Z0-9-]{0,61}[a-zA-Z0-9])\.)+"
)

AWS_S3: Final[re.Pattern[str]] = re.compile(
    r"[a-z0-9.-]+\.s3\.amazonaws\.com"
    r"|[a-z0-9.-]+\.s3-[a-z0-9-]+\.amazonaws\.com"
    r"|[a-z0-9.-]+\.s3-website[.-](?:eu|ap|us|ca|sa|cn)"
    r"|//s3\.amazonaws\.com/[a-z0-9._-]+"
    r"|//s3-[a-z0-9-]+\.amazonaws\.com/[a-z0-9._-]+",
    re.IGNORECASE,
)

# Quoted strings in script source that look like URLs or endpoint paths.
LINKFINDER: Final[re.Pattern[str]] = re.compile(
    r"""(?:"|')"""
    r"("
    r"""(?:[a-zA-Z]{1,10}://|//)[^"'/]{1,}\.[a-zA-Z]{2,}[^"']{0,}"""
    r"|"
    r"""(?:/|\.\./|\./)[^"'><,;| *()(%$^/\\\[\]][^"'><,;|()]{1,}"""
    r"|"
    r"""[a-zA-Z0-9_\-/]{1,}/[a-zA-Z0-9_\-/]{1,}\.(?:[a-zA-Z]{1,4}|action)(?:[\?|#][^"|']{0,}|)"""
    r"|"
    r"""[a-zA-Z0-9_\-/]{1,}/[a-zA-Z0-9_\-/]{3,}(?:[\?|#][^"|']{0,}|)"""
    r"|"
    r"""[a-zA-Z0-9_\-]{1,}\.(?:php|asp|aspx|jsp|json|action|html|js|txt|xml)(?:[\?|#][^"|']{0,}|)"""
    r")"
    r"""(?:"|')"""
)

# Bodies above this size are split on ";" and "," before the linkfinder scan.
LINKFINDER_SPLIT_THRESHOLD: Final[int] = 1_000_000

SCRIPT_EXTENSIONS: Final[FrozenSet[str]] = frozenset({".js", ".xml", ".json"})

MINIFIED_MARKER: Final[str] = ".min.js"

__all__ = [
    "DEFAULT_BLACKLIST",
    "SUBDOMAIN_PREFIX",
    "AWS_S3",
    "LINKFINDER",
    "LINKFINDER_SPLIT_THRESHOLD",
    "SCRIPT_EXTENSIONS",
    "MINIFIED_MARKER",
]
