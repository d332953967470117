# File: tests/test_report.py
from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from order_scout.aggregator import PageStatus, aggregate_results, classify
from order_scout.client.models import BatchResult, Finding, Revision, RevisionSelection
from order_scout.config import ScoutConfig
from order_scout.report import render_html, render_json, report_filename


def selection(filename="rev-1", ts="2025-03-04T10:00:00Z", latest_ts="2025-09-01T00:00:00Z"):
    selected = Revision.from_payload(
        {"filename": filename, "published": True, "modificationTimestamp": ts, "siteId": "site-9"}
    )
    latest = Revision.from_payload({"filename": "latest", "published": True, "modificationTimestamp": latest_ts})
    return RevisionSelection(selected=selected, most_recently_published=latest, total_count=5, filtered_count=3)


def found(hidden: bool) -> Finding:
    node = {"pageUriSEO": "online-ordering", "jsonFileName": "page-7", "hidden": hidden}
    return Finding(found=True, search_type="exact-online-ordering-validated", node=node, path=("pages", 0), hidden=hidden)


@pytest.fixture()
def results():
    return [
        BatchResult("visible-msid", True, selection(), found(hidden=False)),
        BatchResult("hidden-msid", True, selection(), found(hidden=True)),
        BatchResult("missing-msid", True, selection(), Finding.not_found()),
        BatchResult("norev-msid", True, RevisionSelection(None, None, 0, 0)),
        BatchResult("broken-msid", False, error="HTTP 500 for https://x <y>"),
    ]


def test_classify(results):
    assert [classify(r) for r in results] == [
        PageStatus.VISIBLE,
        PageStatus.HIDDEN,
        PageStatus.NOT_FOUND,
        PageStatus.NOT_FOUND,
        PageStatus.ERROR,
    ]
    assert PageStatus.NOT_FOUND.slug == "not-found"


def test_aggregate_rows_and_summary(results):
    report = aggregate_results(results, ScoutConfig())

    visible = report.rows[0]
    assert visible.status == "Visible"
    assert visible.site_id == "site-9"
    assert visible.modification_date == "04/03/2025"
    assert visible.published_date == "01/09/2025"
    assert visible.revision_url == "https://editor.wixstatic.com/revs/rev-1.z"
    assert visible.page_data_url == "https://editor.parastorage.com/sites/page-7.z?v=3"
    assert visible.page_uri_seo == "online-ordering"

    norev = report.rows[3]
    assert (norev.modification_date, norev.published_date, norev.filename) == ("N/A", "N/A", None)

    summary = report.summary
    assert (summary.total, summary.successful, summary.failed) == (5, 4, 1)
    assert (summary.visible, summary.hidden, summary.not_found) == (1, 1, 2)
    assert summary.failures == [("broken-msid", "HTTP 500 for https://x <y>")]


def test_render_html(results, tmp_path):
    report = aggregate_results(results, ScoutConfig())

    path = render_html(report, tmp_path / "nested" / "report.html")

    html = path.read_text(encoding="utf-8")
    assert html.startswith("<!DOCTYPE html")
    for msid in ("visible-msid", "hidden-msid", "missing-msid", "norev-msid", "broken-msid"):
        assert f'data-msid="{msid}"' in html
    assert 'class="status-badge status-hidden"' in html
    assert 'data-status="not-found"' in html
    assert 'id="totalCount">5<' in html
    # error text is escaped
    assert "&lt;y&gt;" in html
    assert "<y>" not in html


def test_render_json(results, tmp_path):
    report = aggregate_results(results, ScoutConfig())

    path = render_json(report, tmp_path / "out.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["summary"]["total"] == 5
    assert [row["status"] for row in data["rows"]] == ["Visible", "Hidden", "Not Found", "Not Found", "Error"]
    assert data["rows"][4]["error"].startswith("HTTP 500")


def test_report_filename():
    now = datetime(2025, 8, 25, 13, 5, 9, tzinfo=timezone.utc)
    assert report_filename(now=now) == "report-2025-08-25T13-05-09.html"
    assert report_filename("abc", now=now) == "report-abc-2025-08-25T13-05-09.html"
