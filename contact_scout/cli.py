# === FILE: contact_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска ContactScout через командную строку.

Команды:
  scrape URL  Обойти один сайт и вывести найденные контакты (JSON)
  batch FILE  Обогатить элементы из JSON-файла (список объектов с полем website)
  poll        Одна проверка листинга: новые элементы, контакты, уведомления
  config      Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Дополнительно:
  --version, -v       Показать версию ContactScout

Пример:
  contact-scout batch items.json --concurrency 5 --json reports/contacts.json --html reports/contacts.html
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from aiohttp import ClientSession

from contact_scout import __version__
from contact_scout.config import load_config
from contact_scout.crawler.crawler import scrape_website
from contact_scout.engine import Engine
from contact_scout.listing import GraphQLListingSource
from contact_scout.logger import DEFAULT_FORMAT, init_logging
from contact_scout.notifier import WebhookNotifier
from contact_scout.report.html_report import render_html
from contact_scout.report.json_report import render_json
from contact_scout.scheduler import extract_contact_info, process_batches
from contact_scout.state import JsonStateStore

CONTEXT_SETTINGS = dict(help_option_names=['--help'])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def load_items(path: Path) -> list:
    """Читает элементы из JSON: список объектов или {"items": [...]}."""
    data = json.loads(path.read_text(encoding='utf-8'))
    if isinstance(data, dict):
        data = data.get('items', [])
    if not isinstance(data, list):
        raise TypeError(f'Ожидался список элементов, получено {type(data).__name__}')
    return [item if isinstance(item, dict) else {'website': item} for item in data]


def emit_json(data, pretty: bool):
    click.echo(json.dumps(data, ensure_ascii=False, indent=2 if pretty else None, default=str))


async def run_poll(cfg, init_days):
    """Собирает источник, хранилище и уведомитель и выполняет одну проверку."""
    async with ClientSession() as session:
        engine = Engine(
            cfg,
            GraphQLListingSource(session, cfg.listing),
            JsonStateStore(cfg.state_file),
            WebhookNotifier(session, cfg.webhook_url),
        )
        if init_days:
            init = await engine.initialize(init_days)
            if not init.success:
                return init
        return await engine.check_for_new_items()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='ContactScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
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
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд ContactScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format,
        stream_target=sys.stderr,
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('scrape', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def scrape(ctx, url, pretty):
    """Обойти один сайт и вывести ContactRecord в JSON."""
    cfg = ctx.obj['config']
    try:
        record = asyncio.run(scrape_website(url, cfg))
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')
    emit_json(record.to_dict(), pretty)


@cli.command('batch', context_settings=CONTEXT_SETTINGS)
@click.argument('items_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--concurrency', type=click.IntRange(min=1), default=None, help='Размер пачки (override concurrency_limit)')
@click.option('--delay', type=click.FloatRange(min=0), default=None, help='Пауза между пачками, секунд')
@click.option('--sequential', is_flag=True, help='Последовательный режим с лимитом --max')
@click.option('--max', 'max_count', type=click.IntRange(min=1), default=None, help='Лимит для последовательного режима')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами (по умолчанию шаблон пакета)'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def batch(ctx, items_file, concurrency, delay, sequential, max_count, json_output, html_output, template_dir, pretty):
    """Обогатить элементы из JSON-файла и вывести/сохранить результат."""
    cfg = ctx.obj['config']
    try:
        items = load_items(items_file)
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Ошибка чтения {items_file}: {e}')

    try:
        if sequential:
            results = asyncio.run(extract_contact_info(items, max_count or cfg.max_to_process, config=cfg))
        else:
            results = asyncio.run(
                process_batches(
                    items,
                    concurrency or cfg.concurrency_limit,
                    cfg.batch_delay if delay is None else delay,
                    config=cfg,
                )
            )
    except Exception as e:
        print_error(f'Ошибка при обработке: {e}')

    # Без файлов отчёта печатаем в stdout
    if not json_output and not html_output:
        emit_json(results, pretty)
        return

    # JSON-отчёт
    if json_output:
        try:
            saved_json = render_json(results, json_output)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    # HTML-отчёт
    if html_output:
        try:
            saved_html = render_html(results, html_output, template_dir)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('poll', context_settings=CONTEXT_SETTINGS)
@click.option('--init-days', type=click.IntRange(min=1), default=None, help='Сначала пометить элементы за N дней как просмотренные')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def poll(ctx, init_days, pretty):
    """Одна проверка листинга на новые элементы."""
    cfg = ctx.obj['config']
    try:
        result = asyncio.run(run_poll(cfg, init_days))
    except Exception as e:
        print_error(f'Ошибка при опросе: {e}')
    emit_json(
        {'success': result.success, 'message': result.message, 'newItems': result.new_items},
        pretty,
    )
    if not result.success:
        sys.exit(1)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
