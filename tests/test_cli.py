# File: tests/test_cli.py
"""Тесты для CLI (`order_scout/cli.py`) с использованием click.testing.CliRunner.
Проверяют команды `check`, `config`, `--version`, а также обработку ошибок.
Конвейер подменяется, сеть не используется.
"""
import importlib
import json
from datetime import datetime, timezone

import pytest
from click.testing import CliRunner

from order_scout.cli import cli
from order_scout.client.models import BatchResult, Finding, Revision, RevisionSelection
from order_scout.logger import init_logging

# пакет order_scout экспортирует группу `cli` под тем же именем, что и модуль
cli_module = importlib.import_module("order_scout.cli")


def ok_result(msid: str, hidden: bool = False) -> BatchResult:
    revision = Revision.from_payload(
        {"filename": f"{msid}-rev", "published": True, "modificationTimestamp": "2025-02-01T00:00:00Z"}
    )
    finding = Finding(
        found=True,
        search_type="exact-online-ordering-validated",
        node={"pageUriSEO": "online-ordering", "jsonFileName": f"{msid}-page", "hidden": hidden},
        path=("pages", 2),
        hidden=hidden,
    )
    return BatchResult(msid, True, RevisionSelection(revision, revision, 4, 2), finding)


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Запуск без configs/default.yaml и без секретов из окружения."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ORDER_SCOUT_COOKIE", raising=False)
    monkeypatch.delenv("ORDER_SCOUT_CSRF_TOKEN", raising=False)
    yield
    # CliRunner подменяет stdout, возвращаем обработчики на настоящий
    init_logging()


@pytest.fixture()
def pipeline(monkeypatch):
    """Патчим run_pipeline: запоминаем вызов, возвращаем заготовленные результаты."""
    calls = {}

    async def fake_run(identifiers, cfg):
        calls["identifiers"] = list(identifiers)
        calls["config"] = cfg
        return [
            BatchResult(msid, False, error="HTTP 500 for x") if msid.startswith("bad") else ok_result(msid)
            for msid in identifiers
        ]

    monkeypatch.setattr(cli_module, "run_pipeline", fake_run)
    return calls


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "OrderScout" in result.output


def test_show_config_redacts_secrets(tmp_path):
    cfg_file = tmp_path / "custom.json"
    cfg_file.write_text(json.dumps({"cookie": "session=secret", "concurrency": 2}), encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["cookie"] == "<redacted>"
    assert data["csrf_token"] == ""
    assert data["concurrency"] == 2
    assert "session=secret" not in result.output


def test_invalid_config_exits_with_error(tmp_path):
    cfg_file = tmp_path / "bad.yaml"
    cfg_file.write_text("no_such_option: 1\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])

    assert result.exit_code == 1


def test_check_single(pipeline):
    result = CliRunner().invoke(cli, ["check", "  msid-1 "])

    assert result.exit_code == 0
    assert pipeline["identifiers"] == ["msid-1"]
    assert "Online ordering page found!" in result.output
    assert 'pageUriSEO: "online-ordering"' in result.output
    assert "Exact match: Yes" in result.output
    assert "Path: pages[2]" in result.output
    assert "Filtering: 4 total -> 2 filtered" in result.output


def test_check_single_failure_exits_zero(pipeline):
    result = CliRunner().invoke(cli, ["check", "bad-1"])

    assert result.exit_code == 0
    assert "Failed to process MSID bad-1" in result.output


def test_check_overrides(pipeline):
    result = CliRunner().invoke(cli, ["check", "m", "--concurrency", "2", "--cutoff", "2025-01-01"])

    assert result.exit_code == 0
    cfg = pipeline["config"]
    assert cfg.concurrency == 2
    assert cfg.cutoff == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_check_file_summary(tmp_path, pipeline):
    msids = tmp_path / "msids.txt"
    msids.write_text("# list\nm1\n\n bad-2 \nm3\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["check", "--file", str(msids)])

    assert result.exit_code == 0
    assert pipeline["identifiers"] == ["m1", "bad-2", "m3"]
    assert "Found 3 MSIDs to process" in result.output
    assert "BATCH PROCESSING SUMMARY" in result.output
    assert "Total processed: 3" in result.output
    assert "Successful: 2" in result.output
    assert "Failed: 1" in result.output
    assert "bad-2: HTTP 500 for x" in result.output


def test_check_missing_file(tmp_path, pipeline):
    result = CliRunner().invoke(cli, ["check", "-f", str(tmp_path / "missing.txt")])

    assert result.exit_code == 1
    assert "Error reading file" in result.output
    assert "identifiers" not in pipeline


def test_check_empty_file(tmp_path, pipeline):
    msids = tmp_path / "empty.txt"
    msids.write_text("# nothing\n\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["check", "-f", str(msids)])

    assert result.exit_code == 0
    assert "No valid MSIDs found in the file." in result.output
    assert "identifiers" not in pipeline


def test_check_writes_reports(tmp_path, pipeline):
    msids = tmp_path / "msids.txt"
    msids.write_text("m1\nbad-2\n", encoding="utf-8")
    out_json = tmp_path / "out" / "results.json"
    report_dir = tmp_path / "reports"

    result = CliRunner().invoke(
        cli,
        ["check", "-f", str(msids), "--report", "--report-dir", str(report_dir), "--json", str(out_json)],
    )

    assert result.exit_code == 0
    assert "HTML report generated:" in result.output
    reports = list(report_dir.glob("report-*.html"))
    assert len(reports) == 1
    html = reports[0].read_text(encoding="utf-8")
    assert 'data-msid="m1"' in html and 'data-status="error"' in html

    data = json.loads(out_json.read_text(encoding="utf-8"))
    assert data["summary"]["total"] == 2
    assert data["summary"]["failures"] == [["bad-2", "HTTP 500 for x"]]


def test_single_report_name_contains_msid(tmp_path, pipeline):
    result = CliRunner().invoke(cli, ["check", "abc", "-r", "--report-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert len(list(tmp_path.glob("report-abc-*.html"))) == 1
