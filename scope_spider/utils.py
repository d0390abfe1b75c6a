# File: scope_spider/utils.py
"""scope_spider.utils: Вспомогательные функции для URL, raw-запросов и User-Agent."""

from __future__ import annotations

import posixpath
import random
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit

from scope_spider.logger import logger

__all__: Sequence[str] = (
    "get_ext",
    "output_filename",
    "parse_raw_request",
    "random_user_agent",
    "resolve_user_agent",
    "WEB_USER_AGENTS",
    "MOBILE_USER_AGENTS",
)

WEB_USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36 Edg/124.0.2478.51",
)

MOBILE_USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Mobile Safari/537.36",
    "Mozilla/5.0 (Linux; Android 13; SM-S911B) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/123.0.0.0 Mobile Safari/537.36",
    "Mozilla/5.0 (iPad; CPU OS 17_4 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "CriOS/124.0.6367.88 Mobile/15E148 Safari/604.1",
)

_DROPPED_RAW_HEADERS = frozenset({"host", "content-length"})


def get_ext(url: str) -> str:
    """Возвращает расширение пути URL в нижнем регистре (``".js"``) или пустую строку."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    return posixpath.splitext(path)[1].lower()


def output_filename(site_url: str) -> str:
    """Имя файла вывода: hostname с точками, заменёнными на подчёркивания."""
    host = urlsplit(site_url).hostname or "output"
    return host.replace(".", "_")


def random_user_agent(mode: str) -> str:
    pool = MOBILE_USER_AGENTS if mode == "mobi" else WEB_USER_AGENTS
    return random.choice(pool)


def resolve_user_agent(mode: str) -> Optional[str]:
    """Возвращает фиксированный UA либо None, если UA выбирается случайно на запрос."""
    if mode.lower() in ("web", "mobi"):
        return None
    return mode


def parse_raw_request(path: Union[str, Path]) -> Tuple[Dict[str, str], Optional[str]]:
    """Читает raw HTTP-запрос (формат Burp) и возвращает (headers, cookie).

    Строка запроса пропускается, заголовки читаются до первой пустой строки.
    ``Host`` и ``Content-Length`` отбрасываются, ``Cookie`` возвращается отдельно.
    """
    p = Path(path).expanduser()
    if not p.is_file():
        logger.error("Raw request file not found: %s", p)
        raise FileNotFoundError(f"Raw request file not found: {p}")
    lines = p.read_text(encoding="utf-8", errors="replace").splitlines()
    if not lines or len(lines[0].split()) < 2:
        raise ValueError(f"Не удалось разобрать строку запроса в {p}")

    headers: Dict[str, str] = {}
    cookie: Optional[str] = None
    for raw in lines[1:]:
        if not raw.strip():
            break
        key, sep, val = raw.partition(":")
        if not sep:
            raise ValueError(f"Неправильная строка заголовка в {p}: {raw!r}")
        key, val = key.strip(), val.strip()
        if key.lower() == "cookie":
            cookie = val
        elif key.lower() not in _DROPPED_RAW_HEADERS:
            headers[key] = val
    logger.debug("Loaded %d headers from raw request %s", len(headers), p)
    return headers, cookie
