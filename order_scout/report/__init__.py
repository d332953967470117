# File: order_scout/report/__init__.py
"""order_scout.report: генерация отчётов (HTML и JSON) по результатам запуска."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from order_scout.report.html_report import render_html
from order_scout.report.json_report import render_json


def report_filename(identifier: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """``report-<timestamp>.html`` (или ``report-<msid>-<timestamp>.html`` для одного MSID)."""
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%S")
    if identifier:
        return f"report-{identifier}-{stamp}.html"
    return f"report-{stamp}.html"


__all__ = ["render_json", "render_html", "report_filename"]
