# scope_spider/crawler/models.py
"""
Data models for the ScopeSpider crawler.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ArtifactKind(str, Enum):
    """Tag of an emitted artifact; the value is the output line prefix."""

    URL = "url"
    FORM = "form"
    UPLOAD_FORM = "upload-form"
    JAVASCRIPT = "javascript"
    SUBDOMAIN = "subdomains"
    AWS_S3 = "aws-s3"
    LINKFINDER = "linkfinder"
    ROBOTS = "robots"
    SITEMAP = "sitemap"


@dataclass(frozen=True, slots=True)
class Target:
    """Crawl root and the domain token its scope is built from."""

    url: str
    domain: str


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """Absolute URL waiting to be fetched by the dispatcher."""

    url: str
    depth: int
    referer: Optional[str] = None


@dataclass(slots=True)
class FetchOutcome:
    """Result of a single request. ``status == 0`` means no response at all."""

    url: str
    status: int
    body: bytes = b""
    content_type: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True, slots=True)
class Artifact:
    """One discovered datum on its way to the sink."""

    kind: ArtifactKind
    value: str
    status: Optional[int] = None
    source: Optional[str] = None

    def format(self) -> str:
        """Render the stable console line for this artifact."""
        if self.kind is ArtifactKind.URL:
            return f"[url] - [code-{self.status}] - {self.value}"
        if self.kind is ArtifactKind.LINKFINDER:
            return f"[linkfinder] - [from: {self.source}] - {self.value}"
        return f"[{self.kind.value}] - {self.value}"

    def to_json(self, site: str) -> str:
        """Render the artifact as a single JSON object line."""
        return json.dumps(
            {
                "input": site,
                "source": self.source or "body",
                "type": self.kind.value,
                "output": self.value,
                "status": self.status,
            },
            ensure_ascii=False,
        )
