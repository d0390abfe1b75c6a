# === FILE: scope_spider/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска краулера ScopeSpider через командную строку.

Команды:
  crawl     Обойти сайт и вывести найденные артефакты
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (необязательно)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Пример:
  scope-spider crawl -s https://example.com -d 2 -c 10 --sitemap -o out/
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Dict, Tuple

import click
from pydantic import ValidationError

from scope_spider import __version__
from scope_spider.config import CrawlConfig, load_config
from scope_spider.engine import start_crawl
from scope_spider.logger import init_logging
from scope_spider.report import DEFAULT_TEMPLATE_DIR, render_html, render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def parse_headers(ctx, param, values: Tuple[str, ...]) -> Dict[str, str]:
    """Разбирает повторяемую опцию ``-H "Key: Value"``."""
    headers: Dict[str, str] = {}
    for raw in values:
        key, sep, val = raw.partition(':')
        if not sep or not key.strip():
            raise click.BadParameter(f'ожидается "Key: Value", получено {raw!r}')
        headers[key.strip()] = val.strip()
    return headers


def build_config(ctx, **overrides) -> CrawlConfig:
    try:
        return load_config(ctx.obj['config_path'], **overrides)
    except ValidationError as e:
        print_error(f'Ошибка конфигурации:\n{e}')
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='ScopeSpider, version %(version)s')
@click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
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
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд ScopeSpider CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--site', '-s', default=None, help='Сайт для обхода')
@click.option('--depth', '-d', type=int, default=None, help='Максимальная глубина (0 = без ограничения)')
@click.option('--concurrent', '-c', type=int, default=None, help='Параллельных запросов на домен')
@click.option('--delay', '-k', type=float, default=None, help='Пауза между запросами (секунд)')
@click.option('--random-delay', '-K', type=float, default=None, help='Дополнительная случайная пауза (секунд)')
@click.option('--timeout', '-m', type=float, default=None, help='Таймаут запроса (секунд)')
@click.option('--proxy', '-p', default=None, help='HTTP-прокси')
@click.option('--cookie', default=None, help='Cookie для запросов')
@click.option('--header', '-H', 'headers', multiple=True, callback=parse_headers, help='Заголовок "Key: Value" (можно повторять)')
@click.option('--burp', 'raw_request', default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help='Файл raw HTTP-запроса (Burp)')
@click.option('--blacklist', default=None, help='Regex URL, которые не нужно обходить')
@click.option('--no-redirect', is_flag=True, help='Не следовать редиректам')
@click.option('--user-agent', '-u', default=None, help='web | mobi | произвольный User-Agent')
@click.option('--subs', is_flag=True, help='Включать поддомены в область обхода')
@click.option('--no-robots', is_flag=True, help='Не искать URL в robots.txt')
@click.option('--sitemap', is_flag=True, help='Искать URL в sitemap.xml')
@click.option('--output', '-o', 'output_dir', default=None, type=click.Path(file_okay=False, path_type=Path), help='Папка для сохранения результатов')
@click.option('--json', 'json_lines', is_flag=True, help='Выводить результаты в формате JSON')
@click.option('--report-json', default=None, type=click.Path(writable=True, dir_okay=False, path_type=Path), help='Сохранить сводный JSON-отчёт')
@click.option('--report-html', default=None, type=click.Path(writable=True, dir_okay=False, path_type=Path), help='Сохранить сводный HTML-отчёт')
@click.option('--template', '-t', 'template_dir', default=DEFAULT_TEMPLATE_DIR, show_default=True, type=click.Path(exists=True, file_okay=False, path_type=Path), help='Папка с Jinja2-шаблоном отчёта')
@click.pass_context
def crawl(ctx, site, depth, concurrent, delay, random_delay, timeout, proxy, cookie, headers,
          raw_request, blacklist, no_redirect, user_agent, subs, no_robots, sitemap,
          output_dir, json_lines, report_json, report_html, template_dir):
    """Обойти сайт и вывести найденные артефакты."""
    cfg = build_config(
        ctx,
        site=site,
        max_depth=depth,
        concurrency=concurrent,
        delay=delay,
        random_delay=random_delay,
        timeout=timeout,
        proxy=proxy,
        cookie=cookie,
        headers=headers or None,
        raw_request=raw_request,
        blacklist=blacklist,
        follow_redirects=False if no_redirect else None,
        user_agent=user_agent,
        include_subdomains=True if subs else None,
        robots=False if no_robots else None,
        sitemap=True if sitemap else None,
        output_dir=output_dir,
        json_lines=True if json_lines else None,
    )
    try:
        report = asyncio.run(start_crawl(cfg))
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    if report_json:
        try:
            saved_json = render_json(report, report_json)
            click.echo(f'JSON report: {saved_json}', err=True)
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if report_html:
        try:
            saved_html = render_html(report, template_dir, report_html)
            click.echo(f'HTML report: {saved_html}', err=True)
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.option('--site', '-s', default=None, help='Сайт для обхода')
@click.pass_context
def show_config(ctx, site):
    """Показать итоговую конфигурацию в JSON."""
    cfg = build_config(ctx, site=site)
    click.echo(json.dumps(cfg.model_dump(mode='json'), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    cli()
