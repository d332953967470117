# === FILE: order_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа OrderScout для командной строки.

Команды:
  check INPUT   Проверить один MSID (или файл со списком MSID с --file)
  config        Показать текущую конфигурацию (секреты скрыты)

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-file PATH     Дополнительно писать логи в файл
  --log-format FORMAT Формат логирования

Команда check опции:
  -f, --file          INPUT: путь к файлу с MSID (по одному в строке, # для комментариев)
  -d, --debug         Подробный вывод запросов и ответов
  -r, --report        Сохранить HTML-отчёт report-<время>.html
  --report-dir DIR    Папка для отчётов
  --json PATH         Сохранить результаты в JSON
  --concurrency INT   Сколько MSID обрабатывать одновременно
  --cutoff DATE       Граница даты ревизий (YYYY-MM-DD)

Пример:
  order-scout --config configs/default.yaml check --file msids.txt --report
"""
import asyncio
import json
import sys
from datetime import timezone
from pathlib import Path

import click
from pydantic import ValidationError

from order_scout import __version__
from order_scout.aggregator import aggregate_results
from order_scout.client.models import BatchResult
from order_scout.config import default_config, load_config
from order_scout.engine import run_pipeline
from order_scout.logger import init_logging, redact
from order_scout.report import render_html, render_json, report_filename
from order_scout.utils import read_identifiers

CONTEXT_SETTINGS = dict(help_option_names=["--help"])

MATCH_DESCRIPTIONS = {
    "exact-online-ordering-validated": 'Yes (exact "online-ordering")',
    "contains-online-ordering-validated": 'No (contains "online-ordering")',
    "contains-order-validated": 'No (contains "order")',
    "order-with-app": 'No (order page with restaurant app)',
    "restaurant-app-fallback": "No (restaurant app fallback)",
}


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _print_result(result: BatchResult) -> None:
    """Сводка по одному MSID в человекочитаемом виде."""
    if not result.success:
        click.secho(f'Failed to process MSID {result.identifier}: {result.error}', fg='red', err=True)
        return
    selection = result.selection
    if selection is not None:
        click.echo(
            f'Filtering: {selection.total_count} total -> {selection.filtered_count} filtered'
        )
    finding = result.finding
    if finding is None:
        click.echo('No revision found matching criteria - revision data not analysed')
        return
    if not finding.found:
        click.echo('No online ordering page found')
        return
    click.echo('Online ordering page found!')
    click.echo(f'  - pageUriSEO: "{finding.page_uri_seo}"')
    click.echo(f'  - Exact match: {MATCH_DESCRIPTIONS.get(finding.search_type, "No")}')
    click.echo(f'  - Search type: {finding.search_type}')
    click.echo(f'  - Hidden: {"YES" if finding.hidden else "NO"}')
    click.echo(f'  - Path: {finding.path_str}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='OrderScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (только stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_file, log_format):
    """OrderScout: поиск страницы онлайн-заказов в ревизиях сайтов."""
    ctx.ensure_object(dict)
    ctx.obj['log_file'] = log_file
    ctx.obj['log_format'] = log_format
    init_logging(level='INFO', log_file=log_file, log_format=log_format)
    try:
        if config_path is None and not Path('configs/default.yaml').exists():
            cfg = default_config()
        else:
            cfg = load_config(config_path)
    except (OSError, ValueError, TypeError, ValidationError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.obj['config'] = cfg


@cli.command('check', context_settings=CONTEXT_SETTINGS)
@click.argument('input_value', metavar='INPUT')
@click.option('--file', '-f', 'is_file', is_flag=True, help='INPUT это файл с MSID, по одному в строке')
@click.option('--debug', '-d', is_flag=True, help='Подробный вывод запросов и ответов')
@click.option('--report', '-r', is_flag=True, help='Сгенерировать HTML-отчёт с фильтрами')
@click.option(
    '--report-dir', 'report_dir',
    default='.',
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help='Папка для HTML-отчёта'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить результаты в JSON-файл'
)
@click.option('--concurrency', type=click.IntRange(min=1), default=None, help='Сколько MSID обрабатывать одновременно')
@click.option(
    '--cutoff',
    type=click.DateTime(formats=['%Y-%m-%d', '%Y-%m-%dT%H:%M:%S']),
    default=None,
    help='Выбирать ревизии, изменённые строго раньше этой даты (UTC)'
)
@click.pass_context
def check(ctx, input_value, is_file, debug, report, report_dir, json_output, concurrency, cutoff):
    """Проверить MSID (или список MSID из файла) и вывести/сохранить результаты."""
    if debug:
        init_logging(level='DEBUG', log_file=ctx.obj['log_file'], log_format=ctx.obj['log_format'])

    cfg = ctx.obj['config']
    overrides = {}
    if concurrency is not None:
        overrides['concurrency'] = concurrency
    if cutoff is not None:
        overrides['cutoff'] = cutoff.replace(tzinfo=timezone.utc)
    if overrides:
        cfg = cfg.model_copy(update=overrides)

    if is_file:
        try:
            identifiers = read_identifiers(input_value)
        except (OSError, UnicodeDecodeError) as e:
            print_error(f'Error reading file {input_value}: {e}')
        if not identifiers:
            click.echo('No valid MSIDs found in the file.')
            return
        click.echo(f'Found {len(identifiers)} MSIDs to process from file: {input_value}')
    else:
        identifiers = [input_value.strip()]

    results = asyncio.run(run_pipeline(identifiers, cfg))

    if is_file:
        successful = [r for r in results if r.success]
        failed = [r for r in results if not r.success]
        click.echo('=' * 60)
        click.echo('BATCH PROCESSING SUMMARY')
        click.echo('=' * 60)
        click.echo(f'Total processed: {len(results)}')
        click.echo(f'Successful: {len(successful)}')
        click.echo(f'Failed: {len(failed)}')
        if failed:
            click.echo('\nFailed MSIDs:')
            for r in failed:
                click.echo(f'  - {r.identifier}: {r.error}')
    else:
        _print_result(results[0])

    if not report and not json_output:
        return

    batch_report = aggregate_results(results, cfg)

    if json_output:
        try:
            saved_json = render_json(batch_report, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if report:
        name = report_filename(None if is_file else identifiers[0])
        try:
            saved_html = render_html(batch_report, report_dir / name)
            click.echo(f'HTML report generated: {saved_html}')
        except OSError as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    data = redact(ctx.obj['config'].model_dump(mode='json'))
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
