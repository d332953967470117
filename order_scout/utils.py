# File: order_scout/utils.py
"""order_scout.utils: чтение списков MSID, разбор и форматирование временных меток."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from order_scout.logger import logger

__all__: Sequence[str] = (
    "read_identifiers",
    "parse_timestamp",
    "format_date",
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def read_identifiers(path: Union[str, Path]) -> List[str]:
    """Reads one MSID per line, skipping blank lines and ``#`` comments."""
    p = Path(path).expanduser()
    if not p.is_file():
        logger.error("Identifier list not found: %s", p)
        raise FileNotFoundError(f"Identifier list not found: {p}")
    identifiers = [
        line.strip()
        for line in p.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    logger.debug("Loaded %d identifiers from %s", len(identifiers), p)
    return identifiers


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an API timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (``Z`` suffix included) and epoch milliseconds.
    Anything else, including empty values, yields ``None``.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug("Unparseable epoch timestamp: %r", value)
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return parse_timestamp(int(text))
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Unparseable timestamp: %r", value)
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def format_date(value: Optional[datetime], placeholder: str = "N/A") -> str:
    """DD/MM/YYYY, the format the report's date filter parses."""
    if value is None:
        return placeholder
    return value.strftime("%d/%m/%Y")
