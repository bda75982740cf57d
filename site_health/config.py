# === FILE: site_health/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера SiteHealth.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

_DEFAULT_SKIP_EXTENSIONS: Tuple[str, ...] = (
    ".pdf", ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico",
    ".zip", ".rar", ".gz", ".tar", ".7z",
    ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".mp4", ".mp3",
)
_DEFAULT_SKIP_PREFIXES: Tuple[str, ...] = ("/wp-admin/", "/wp-content/")


class CrawlerConfig(BaseModel):
    """Конфигурация одного запуска обхода по всем доменам."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    domains: Tuple[str, ...] = Field(..., min_length=1, description="Домены для обхода (без схемы).")
    scheme: Literal["http", "https"] = Field("https", description="Схема корневого URL.")
    timeout: float = Field(8.0, gt=0, description="Таймаут на один запрос (секунд).")
    max_pages: int = Field(150, ge=1, description="Жесткий лимит страниц на домен.")
    max_errors_listed: int = Field(50, ge=0, description="Сколько путей 404 показывать в отчёте.")
    user_agent: str = Field("SiteHealthBot/1.0", min_length=1, description="Заголовок User-Agent.")
    strip_query: bool = Field(True, description="Отбрасывать query string при дедупликации.")
    skip_extensions: Tuple[str, ...] = Field(_DEFAULT_SKIP_EXTENSIONS, description="Расширения без контента.")
    skip_prefixes: Tuple[str, ...] = Field(_DEFAULT_SKIP_PREFIXES, description="Служебные префиксы путей.")
    max_concurrent_sites: Optional[int] = Field(None, ge=1, description="Лимит одновременно обходимых доменов.")
    progress_every: int = Field(10, ge=1, description="Частота событий прогресса (страниц).")
    history_file: Optional[str] = Field(
        "data/errors-404-history.json", description="JSON-файл истории запусков."
    )

    @field_validator("domains", mode="before")
    def _normalize_domains(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple)):
            return v
        cleaned = []
        for item in v:
            if not isinstance(item, str):
                cleaned.append(item)
                continue
            host = item.strip().lower()
            for prefix in ("https://", "http://"):
                if host.startswith(prefix):
                    host = host[len(prefix):]
            host = host.rstrip("/")
            if not host or "/" in host:
                raise ValueError(f"domain must be a bare hostname, got {item!r}")
            cleaned.append(host)
        return tuple(dict.fromkeys(cleaned))

    @field_validator("skip_extensions", mode="before")
    def _dotted_extensions(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return tuple(
                (e if e.startswith(".") else f".{e}").lower() if isinstance(e, str) else e for e in v
            )
        return v


_DEFAULT_CFG = Path("configs/default.yaml")


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


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlerConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    try:
        return CrawlerConfig(**data)
    except ValidationError:
        raise


__all__ = ["CrawlerConfig", "load_config"]
