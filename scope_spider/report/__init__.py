# File: scope_spider/report/__init__.py
"""scope_spider.report: Генерация отчётов (JSON и HTML) по результатам обхода."""

from __future__ import annotations

from pathlib import Path

from scope_spider.report.html_report import render_html
from scope_spider.report.json_report import render_json

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

__all__ = ["render_json", "render_html", "DEFAULT_TEMPLATE_DIR"]
