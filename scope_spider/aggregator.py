# File: scope_spider/aggregator.py
"""scope_spider.aggregator: Сводный отчёт по найденным артефактам."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional, TypedDict

from scope_spider.crawler.models import Artifact, ArtifactKind


class UrlInfo(TypedDict):
    """Посещённый URL и код ответа."""

    url: str
    status: Optional[int]


class LinkfinderInfo(TypedDict):
    """Ссылка, найденная в JavaScript, и её источник."""

    link: str
    source: Optional[str]


@dataclass(slots=True)
class CrawlReport:
    """Результаты обхода, сгруппированные по типу артефакта."""

    site: str
    urls: List[UrlInfo] = field(default_factory=list)
    forms: List[str] = field(default_factory=list)
    upload_forms: List[str] = field(default_factory=list)
    javascript: List[str] = field(default_factory=list)
    subdomains: List[str] = field(default_factory=list)
    aws_s3: List[str] = field(default_factory=list)
    linkfinder: List[LinkfinderInfo] = field(default_factory=list)
    robots: List[str] = field(default_factory=list)
    sitemap: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(v) for k, v in asdict(self).items() if isinstance(v, list))

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


_PLAIN_FIELDS = {
    ArtifactKind.FORM: "forms",
    ArtifactKind.UPLOAD_FORM: "upload_forms",
    ArtifactKind.JAVASCRIPT: "javascript",
    ArtifactKind.SUBDOMAIN: "subdomains",
    ArtifactKind.AWS_S3: "aws_s3",
    ArtifactKind.ROBOTS: "robots",
    ArtifactKind.SITEMAP: "sitemap",
}


def aggregate_results(site: str, artifacts: Iterable[Artifact]) -> CrawlReport:
    """Собирает артефакты в CrawlReport, сохраняя порядок обнаружения."""
    report = CrawlReport(site=site)
    for artifact in artifacts:
        if artifact.kind is ArtifactKind.URL:
            report.urls.append({"url": artifact.value, "status": artifact.status})
        elif artifact.kind is ArtifactKind.LINKFINDER:
            report.linkfinder.append({"link": artifact.value, "source": artifact.source})
        else:
            getattr(report, _PLAIN_FIELDS[artifact.kind]).append(artifact.value)
    return report
