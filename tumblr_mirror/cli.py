# === FILE: tumblr_mirror/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point for TumblrMirror.

Commands:
  mirror    Mirror a blog into a SQLite file
  show      Write the stored content of one URL to stdout
  list      List every URL stored in a database file

Common options:
  --config PATH       YAML/JSON config file (command line values win)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only if not given)
  --log-format FORMAT Logging format string

Example:
  tumblr-mirror mirror --tumblr_name staff --db_file staff.db --request_time 2000
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from tumblr_mirror import __version__
from tumblr_mirror.config import build_config
from tumblr_mirror.crawler.urls import canonicalize
from tumblr_mirror.engine import list_pages, read_page, start_mirror
from tumblr_mirror.errors import MirrorError
from tumblr_mirror.logger import init_logging

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err.get("loc", ())) or "config"
    return f"--{field}: {err.get('msg', 'invalid value')}"


def _parse_request_time(ctx, param, value):
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        print_error("--request_time should be a number.")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='TumblrMirror, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='YAML or JSON config file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stdout only if not given)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """TumblrMirror command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('mirror', context_settings=CONTEXT_SETTINGS)
@click.option('--tumblr_name', 'tumblr_name', default=None, help='Name of tumblr to mirror.')
@click.option('--db_file', 'db_file', default=None, help='Database file to use.')
@click.option(
    '--request_time', 'request_time',
    default=None,
    callback=_parse_request_time,
    help='Milliseconds between network requests (default 5000).'
)
@click.option('--timeout', 'timeout', type=float, default=None, help='Per-request timeout (seconds).')
@click.option('--base_url', 'base_url', default=None, help='Site root if not <name>.tumblr.com.')
@click.pass_context
def mirror(ctx, tumblr_name, db_file, request_time, timeout, base_url):
    """Mirror a blog into a SQLite database file."""
    try:
        cfg = build_config(
            ctx.obj['config_path'],
            tumblr_name=tumblr_name,
            db_file=db_file,
            request_time=request_time,
            timeout=timeout,
            base_url=base_url,
        )
    except ValidationError as e:
        print_error(_first_error(e))
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Error loading configuration: {e}')

    try:
        stats = asyncio.run(start_mirror(cfg))
    except MirrorError as e:
        print_error(f'Mirror failed: {e}')

    click.echo(stats.summary())


@cli.command('show', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--db_file', 'db_file', required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def show(url, db_file):
    """Write the stored content of URL to stdout."""
    try:
        content = asyncio.run(read_page(db_file, canonicalize(url)))
    except MirrorError as e:
        print_error(f'Error reading database: {e}')
    if content is None:
        print_error(f'No content stored for {canonicalize(url)}')
    click.get_binary_stream('stdout').write(content)


@cli.command('list', context_settings=CONTEXT_SETTINGS)
@click.option('--db_file', 'db_file', required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def list_urls(db_file):
    """List every URL stored in the database."""
    try:
        urls = asyncio.run(list_pages(db_file))
    except MirrorError as e:
        print_error(f'Error reading database: {e}')
    for url in urls:
        click.echo(url)


if __name__ == "__main__":
    cli()
