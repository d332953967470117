# File: order_scout/aggregator.py
"""order_scout.aggregator: сведение BatchResult в строки отчёта и итоговую статистику."""

from __future__ import annotations

import enum
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from order_scout.client.api import page_url, revision_url
from order_scout.client.models import BatchResult
from order_scout.config import ScoutConfig
from order_scout.utils import format_date


class PageStatus(str, enum.Enum):
    VISIBLE = "Visible"
    HIDDEN = "Hidden"
    NOT_FOUND = "Not Found"
    ERROR = "Error"

    @property
    def slug(self) -> str:
        """Значение для data-status и фильтра в HTML (``not-found``)."""
        return self.value.lower().replace(" ", "-")


def classify(result: BatchResult) -> PageStatus:
    """Статус строки отчёта для одного результата."""
    if not result.success:
        return PageStatus.ERROR
    if result.finding is None or not result.finding.found:
        return PageStatus.NOT_FOUND
    if result.finding.hidden:
        return PageStatus.HIDDEN
    return PageStatus.VISIBLE


@dataclass(slots=True)
class ReportRow:
    """Одна строка таблицы отчёта."""

    msid: str
    status: str
    status_slug: str
    site_id: Optional[str] = None
    modification_date: str = "N/A"
    published_date: str = "N/A"
    filename: Optional[str] = None
    revision_url: Optional[str] = None
    json_file_name: Optional[str] = None
    page_data_url: Optional[str] = None
    page_uri_seo: Optional[str] = None
    search_type: Optional[str] = None
    error: Optional[str] = None


@dataclass(slots=True)
class BatchSummary:
    total: int = 0
    successful: int = 0
    failed: int = 0
    visible: int = 0
    hidden: int = 0
    not_found: int = 0
    failures: List[tuple[str, str]] = field(default_factory=list)


@dataclass(slots=True)
class BatchReport:
    """Результаты запуска: строки отчёта и сводка."""

    rows: List[ReportRow] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def json(self, *, pretty: bool = False) -> str:
        output = {
            "generated_at": self.generated_at.isoformat(),
            "summary": asdict(self.summary),
            "rows": [asdict(row) for row in self.rows],
        }
        return json.dumps(output, ensure_ascii=False, indent=2 if pretty else None)


def _build_row(result: BatchResult, config: ScoutConfig) -> ReportRow:
    status = classify(result)
    row = ReportRow(msid=result.identifier, status=status.value, status_slug=status.slug, error=result.error)

    selection = result.selection
    if selection is not None:
        selected = selection.selected
        if selected is not None:
            row.site_id = selected.site_id
            row.modification_date = format_date(selected.modification_timestamp)
            if selected.filename:
                row.filename = selected.filename
                row.revision_url = revision_url(config, selected.filename)
        if selection.most_recently_published is not None:
            row.published_date = format_date(selection.most_recently_published.modification_timestamp)

    finding = result.finding
    if finding is not None:
        row.search_type = finding.search_type
        row.page_uri_seo = finding.page_uri_seo
        if finding.json_file_name:
            row.json_file_name = finding.json_file_name
            row.page_data_url = page_url(config, finding.json_file_name)
    return row


def _summarize(results: Sequence[BatchResult], rows: Sequence[ReportRow]) -> BatchSummary:
    summary = BatchSummary(total=len(results))
    for result, row in zip(results, rows):
        if result.success:
            summary.successful += 1
        else:
            summary.failed += 1
            summary.failures.append((result.identifier, result.error or "unknown error"))
        if row.status == PageStatus.VISIBLE.value:
            summary.visible += 1
        elif row.status == PageStatus.HIDDEN.value:
            summary.hidden += 1
        elif row.status == PageStatus.NOT_FOUND.value:
            summary.not_found += 1
    return summary


def aggregate_results(results: Sequence[BatchResult], config: ScoutConfig) -> BatchReport:
    """Собирает BatchReport из результатов конвейеров."""
    rows = [_build_row(r, config) for r in results]
    return BatchReport(rows=rows, summary=_summarize(results, rows))


__all__ = ["PageStatus", "ReportRow", "BatchSummary", "BatchReport", "classify", "aggregate_results"]
