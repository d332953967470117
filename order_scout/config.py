# === FILE: order_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации OrderScout.
Используется Pydantic для описания схемы и проверки данных.

Секреты (cookie бэк-офиса и CSRF-токен) можно не хранить в файле:
переменные окружения ``ORDER_SCOUT_COOKIE`` и ``ORDER_SCOUT_CSRF_TOKEN``
перекрывают значения из конфига.
"""
from __future__ import annotations

import errno
import json
import os
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

ENV_PREFIX = "ORDER_SCOUT"
DEFAULT_CUTOFF = datetime(2025, 8, 25, tzinfo=timezone.utc)
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/137.0.0.0 Safari/537.36"
)


class ScoutConfig(BaseModel):
    """Конфигурация одного запуска OrderScout."""
    model_config = ConfigDict(extra="forbid", frozen=True, validate_default=True)

    backoffice_url: HttpUrl = Field("https://wix-bo.com", description="Базовый URL fire-console.")
    revisions_url: HttpUrl = Field(
        "https://editor.wixstatic.com", description="Хост с содержимым ревизий (/revs/<file>.z)."
    )
    pages_url: HttpUrl = Field(
        "https://editor.parastorage.com", description="Хост с документами страниц (/sites/<file>.z)."
    )
    cookie: str = Field("", description="Заголовок Cookie сессии бэк-офиса.")
    csrf_token: str = Field("", description="Значение x-fire-console-csrf-token.")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")

    restaurants_meta_app_id: str = Field(
        "9a5d83fd-8570-482e-81ab-cfa88942ee60",
        description="appDefId, для которого подписывается токен авторизации.",
    )
    restaurants_app_id: str = Field(
        "13e8d036-5516-6104-b456-c8466db39542",
        description="appDefinitionId виджета онлайн-заказов на странице.",
    )
    html_app_def_id: str = Field("HtmlWeb", description="app_def_id приложения с ревизиями.")

    cutoff: datetime = Field(DEFAULT_CUTOFF, description="Выбираются только ревизии строго раньше этой даты.")
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    retry_times: int = Field(3, ge=1, description="Число попыток на один запрос при 5xx/сетевых ошибках.")
    retry_delay: float = Field(1.0, ge=0, description="Пауза между попытками (секунд).")
    concurrency: int = Field(10, ge=1, description="Сколько MSID обрабатывается одновременно.")
    revisions_limit: int = Field(100, ge=1, description="Размер страницы listRevisions.")

    @field_validator("backoffice_url", "revisions_url", "pages_url", mode="before")
    def strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("cutoff", mode="before")
    def coerce_cutoff(cls, v: Any) -> Any:
        # YAML отдаёт date для "2025-08-25", строку дату тоже допускаем
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min)
        if isinstance(v, str) and len(v.strip()) == 10:
            return datetime.combine(date.fromisoformat(v.strip()), time.min)
        return v

    @field_validator("cutoff", mode="after")
    def cutoff_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def base(self, field: str) -> str:
        """Строковый URL без завершающего слеша (HttpUrl добавляет его сам)."""
        return str(getattr(self, field)).rstrip("/")


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


def _apply_env(data: dict[str, Any]) -> dict[str, Any]:
    """Подставляет секреты из окружения поверх данных файла."""
    merged = dict(data)
    for key in ("cookie", "csrf_token"):
        value = os.getenv(f"{ENV_PREFIX}_{key.upper()}")
        if value:
            merged[key] = value
    return merged


def default_config() -> ScoutConfig:
    """Встроенные значения по умолчанию (+ секреты из окружения), без файла."""
    return ScoutConfig(**_apply_env({}))


def load_config(path: Union[str, Path, None]) -> ScoutConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект ScoutConfig.
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

    return ScoutConfig(**_apply_env(data))


__all__ = ["ScoutConfig", "load_config", "default_config", "DEFAULT_CUTOFF"]
