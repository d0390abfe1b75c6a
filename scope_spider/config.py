# === FILE: scope_spider/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера ScopeSpider.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
    model_validator,
)

from scope_spider.utils import parse_raw_request

__all__ = ["CrawlConfig", "load_config", "ValidationError"]


class CrawlConfig(BaseModel):
    """Конфигурация одного запуска обхода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    site: HttpUrl = Field(..., description="Корневой URL обхода.")
    max_depth: int = Field(1, ge=0, description="Максимальная глубина (корень = 1, 0 = без ограничения).")
    concurrency: int = Field(5, ge=1, description="Число параллельных запросов на домен.")
    delay: float = Field(0.0, ge=0, description="Пауза после каждого запроса к домену (секунд).")
    random_delay: float = Field(0.0, ge=0, description="Дополнительная случайная пауза (секунд).")
    timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    proxy: Optional[str] = Field(None, description="URL HTTP-прокси.")
    cookie: Optional[str] = Field(None, description="Значение заголовка Cookie.")
    headers: Dict[str, str] = Field(default_factory=dict, description="Статические заголовки.")
    raw_request: Optional[Path] = Field(None, description="Файл raw HTTP-запроса (Burp).")
    blacklist: Optional[str] = Field(None, description="Дополнительный regex чёрного списка URL.")
    follow_redirects: bool = Field(True, description="Следовать редиректам.")
    user_agent: str = Field("web", min_length=1, description="web | mobi | произвольная строка.")
    include_subdomains: bool = Field(False, description="Включать поддомены в область обхода.")
    robots: bool = Field(True, description="Искать URL в robots.txt.")
    sitemap: bool = Field(False, description="Искать URL в sitemap.xml.")
    output_dir: Optional[Path] = Field(None, description="Папка для сохранения результатов.")
    json_lines: bool = Field(False, description="Выводить результаты в формате JSON.")

    @field_validator("site", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    @field_validator("blacklist")
    def _check_blacklist(cls, v: Optional[str]) -> Optional[str]:
        if v:
            try:
                re.compile(v)
            except re.error as exc:
                raise ValueError(f"Неправильный regex чёрного списка: {exc}") from exc
        return v or None

    @field_validator("proxy")
    def _check_proxy(cls, v: Optional[str]) -> Optional[str]:
        if v and "://" not in v:
            raise ValueError(f"Прокси должен содержать схему: {v}")
        return v or None

    @model_validator(mode="after")
    def _check_domain(self) -> CrawlConfig:
        if not self.domain:
            raise ValueError(f"Не удалось определить домен из {self.site}")
        return self

    @model_validator(mode="after")
    def _check_raw_request(self) -> CrawlConfig:
        if self.raw_request is not None and not Path(self.raw_request).expanduser().is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(self.raw_request))
        return self

    @property
    def site_url(self) -> str:
        return str(self.site).rstrip("/")

    @property
    def domain(self) -> str:
        return (self.site.host or "").lower()

    def request_headers(self) -> Dict[str, str]:
        """Статические заголовки с учётом cookie и raw-запроса (raw-запрос имеет приоритет)."""
        if self.raw_request is not None:
            headers, cookie = parse_raw_request(self.raw_request)
        else:
            headers, cookie = dict(self.headers), self.cookie
        if cookie:
            headers["Cookie"] = cookie
        return headers


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def _read_file(path: Union[str, Path]) -> dict[str, Any]:
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> CrawlConfig:
    """
    Читает YAML или JSON (если задан *path*) и возвращает проверенный CrawlConfig.
    Значения из *overrides*, отличные от None, перекрывают значения из файла.
    """
    data: dict[str, Any] = _read_file(path) if path is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    return CrawlConfig(**data)
