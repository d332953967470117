# === FILE: order_scout/logger.py ===
"""Логирование OrderScout.

Один логгер ``OrderScout`` (дочерние: ``OrderScout.api``, ``OrderScout.locator``
и т.д.), вывод в stdout и, по желанию, в файл с ротацией. CLI вызывает
:func:`init_logging` один раз за запуск; ``--debug`` переключает уровень на
``DEBUG``, и тогда в лог попадают заголовки запросов. Секреты сессии
бэк-офиса перед выводом маскируются через :func:`redact`.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Final, Iterable, Mapping, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "OrderScout"

#: заголовки и поля конфига, которые нельзя выводить как есть
SECRET_KEYS: Final[frozenset[str]] = frozenset(
    {"cookie", "csrf_token", "x-fire-console-csrf-token", "authorization"}
)
REDACTED: Final[str] = "<redacted>"

_LevelT = Union[int, str]


def _stdout_handler(fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=str(file),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def redact(data: Mapping[str, Any], keys: Iterable[str] = SECRET_KEYS) -> dict[str, Any]:
    """Копия ``data``, где непустые значения секретных ключей заменены на ``<redacted>``.

    Имена ключей сравниваются без учёта регистра (заголовки HTTP).
    """
    secret = {k.lower() for k in keys}
    return {k: (REDACTED if k.lower() in secret and v else v) for k, v in data.items()}


def get_logger(name: str | None = None) -> logging.Logger:
    """``OrderScout`` или его дочерний логгер ``OrderScout.<name>``."""
    if not name:
        return logging.getLogger(_LOGGER_NAME)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Настраивает уровень и обработчики логгера ``OrderScout``.

    ``replace_handlers=False`` добавляет обработчики к уже существующим.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_stdout_handler(log_format))
    if log_file is not None:
        lg.addHandler(_file_handler(log_file, log_format))

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "get_logger", "redact", "REDACTED", "SECRET_KEYS"]
