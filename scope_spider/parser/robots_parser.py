# File: scope_spider/parser/robots_parser.py
"""scope_spider.parser.robots_parser: Извлечение путей из robots.txt как источника URL."""

from __future__ import annotations

from typing import List, Tuple

_PATH_DIRECTIVES = ("allow", "disallow")


def parse_robots(text: str) -> List[str]:
    """Возвращает пути из директив Allow/Disallow (без учёта User-Agent).

    Шаблоны обрезаются до первого ``*``, маркер конца ``$`` удаляется,
    пустые значения и дубликаты пропускаются.

    Args:
        text: содержимое robots.txt.

    Returns:
        Список путей в порядке появления.
    """
    paths: List[str] = []
    for directive, value in _prepare_lines(text):
        if directive not in _PATH_DIRECTIVES:
            continue
        path = _clean_path(value)
        if path and path not in paths:
            paths.append(path)
    return paths


def _clean_path(value: str) -> str:
    path = value.split("*", 1)[0].rstrip("$").strip()
    return "" if path in ("", "/") else path


def _prepare_lines(text: str) -> List[Tuple[str, str]]:
    """Очищает текст от комментариев и разделяет на (директива, значение)."""
    lines: List[Tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, val = (part.strip() for part in line.split(":", 1))
        lines.append((key.lower(), val))
    return lines
