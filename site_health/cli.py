#!/usr/bin/env python3
"""
Точка входа для запуска краулера SiteHealth через командную строку.

Команды:
  crawl     Обойти все домены конфига, сохранить запуск в историю, вывести/сохранить отчёт
  config    Показать текущую конфигурацию
  history   Эволюция числа 404 по дням или по запускам
  last      Последний сохранённый запуск
  delta     Что изменилось между двумя запусками

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml)
  --limit INT         Макс. число страниц на домен (override max_pages)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Пример:
  site-health --config configs/default.yaml crawl --json reports/crawl.json --pretty
"""
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

import click

from site_health import __version__
from site_health.config import load_config
from site_health.engine import Engine
from site_health.evolution import as_dicts, delta, evolution, latest_delta
from site_health.history import HistoryError, JsonHistoryStore
from site_health.logger import init_logging
from site_health.report.html_report import render_html
from site_health.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _history_store(cfg) -> JsonHistoryStore:
    if not cfg.history_file:
        print_error('История не настроена: задайте history_file в конфиге')
    return JsonHistoryStore(cfg.history_file)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteHealth, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Макс. число страниц на домен (override max_pages)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, limit, log_level, log_file, log_format):
    """Группа команд SiteHealth CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    if limit is not None:
        cfg = cfg.model_copy(update={'max_pages': limit})
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами (по умолчанию встроенный шаблон)'
)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.option(
    '--scan-timeout', 'scan_timeout',
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help='Таймаут всего обхода (секунд); по истечении все домены отменяются'
)
@click.option(
    '--no-record', 'no_record', is_flag=True,
    help='Не сохранять запуск в историю'
)
@click.pass_context
def crawl(ctx, json_output, html_output, template_dir, pretty, scan_timeout, no_record):
    """Обойти домены и сформировать отчёт."""
    cfg = ctx.obj['config']
    engine = Engine(cfg)
    try:
        report = engine.run(scan_timeout=scan_timeout, record=not no_record)
    except asyncio.TimeoutError:
        print_error(f'Обход не завершён за {scan_timeout} секунд')
    except HistoryError as e:
        print_error(f'Ошибка записи истории: {e}')
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    # Без файлов вывода печатаем в stdout
    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


@cli.command('history', context_settings=CONTEXT_SETTINGS)
@click.option('--days', '-d', type=click.IntRange(min=1), default=30, show_default=True,
              help='Окно в днях')
@click.option('--mode', '-m', type=click.Choice(['day', 'run']), default='day', show_default=True,
              help='Одна точка на день или на каждый запуск')
@click.pass_context
def show_history(ctx, days, mode):
    """Эволюция ошибок 404 во времени (JSON)."""
    store = _history_store(ctx.obj['config'])
    try:
        points = evolution(store.records(), days=days, mode=mode)
    except HistoryError as e:
        print_error(f'Ошибка чтения истории: {e}')
    click.echo(json.dumps({'evolution': as_dicts(points), 'days': days, 'count': len(points)},
                          ensure_ascii=False, indent=2))


@cli.command('last', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_last(ctx):
    """Последний сохранённый запуск (JSON)."""
    store = _history_store(ctx.obj['config'])
    try:
        record = store.last()
    except HistoryError as e:
        print_error(f'Ошибка чтения истории: {e}')
    if record is None:
        click.echo('Нет сохранённых запусков. Запустите crawl.')
        return
    click.echo(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))


@cli.command('delta', context_settings=CONTEXT_SETTINGS)
@click.option('--from', 'from_id', default=None, help='ID исходного запуска (по умолчанию предпоследний)')
@click.option('--to', 'to_id', default=None, help='ID конечного запуска (по умолчанию последний)')
@click.pass_context
def show_delta(ctx, from_id, to_id):
    """Новые, исчезнувшие и сохраняющиеся 404 между двумя запусками (JSON)."""
    store = _history_store(ctx.obj['config'])
    try:
        if from_id or to_id:
            records = store.records()
            to_record = store.get(to_id) if to_id else (records[-1] if records else None)
            from_record = store.get(from_id) if from_id else (records[-2] if len(records) > 1 else None)
            if from_record is None or to_record is None:
                print_error('Запуск не найден')
            result = delta(from_record, to_record)
        else:
            result = latest_delta(store.records())
    except HistoryError as e:
        print_error(f'Ошибка чтения истории: {e}')
    if result is None:
        print_error('Delta недоступна (нужно минимум два запуска)')
    click.echo(json.dumps(asdict(result), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    cli()
