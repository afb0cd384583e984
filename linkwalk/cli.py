# === FILE: linkwalk/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point for LinkWalk.

Commands:
  crawl     Run the traversal policy from the config and print its events
  harvest   Collect title/body content for the configured site profiles
  config    Show the effective configuration

Common options:
  --config PATH       Path to the YAML/JSON config (default: configs/default.yaml)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string

crawl options:
  --policy NAME       internal | random | external
  --seed-url URL      Override the start page
  --max-steps N       Hop limit for walks
  --random-seed N     Seed for reproducible walks
  --timeout SEC       Timeout of the whole run
  --json PATH         Save a JSON report
  --html PATH         Save an HTML report
  --template DIR      Folder with the Jinja2 template
  --pretty            Indent the JSON summary printed to stdout

Example:
  linkwalk --config configs/default.yaml crawl --policy random --max-steps 10
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from linkwalk import __version__
from linkwalk.config import load_config
from linkwalk.crawler.models import Policy
from linkwalk.engine import start_harvest, start_traversal
from linkwalk.errors import LinkWalkError
from linkwalk.logger import init_logging
from linkwalk.report.html_report import render_html
from linkwalk.report.json_report import render_json
from linkwalk.report.sinks import ConsoleSink

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _load(ctx, **overrides):
    try:
        return load_config(ctx.obj['config_path'], **overrides)
    except (OSError, ValueError, TypeError, ValidationError) as e:
        print_error(f'Failed to load configuration: {e}')


def _run(coro, timeout):
    try:
        if timeout:
            return asyncio.run(asyncio.wait_for(coro, timeout=timeout))
        return asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f'Traversal did not finish within {timeout} seconds')
    except LinkWalkError as e:
        print_error(f'Traversal failed: {e}')


def _save_reports(results, json_output, html_output, template_dir):
    if json_output:
        try:
            saved_json = render_json(results, json_output)
            click.echo(f'JSON report: {saved_json}', err=True)
        except OSError as e:
            print_error(f'Failed to save JSON report: {e}')
    if html_output:
        try:
            saved_html = render_html(results, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}', err=True)
        except Exception as e:
            print_error(f'Failed to save HTML report: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='LinkWalk, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Path to the YAML or JSON config file.'
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
    help='Log file path (stderr when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """LinkWalk command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--policy', '-p', 'policy',
    type=click.Choice([Policy.INTERNAL.value, Policy.RANDOM.value, Policy.EXTERNAL.value]),
    default=None,
    help='Traversal policy (overrides the config)'
)
@click.option('--seed-url', '-s', 'seed_url', default=None, help='Start page')
@click.option('--max-steps', '-n', 'max_steps', type=int, default=None, help='Hop limit for walks')
@click.option('--random-seed', 'random_seed', type=int, default=None, help='Random seed')
@click.option('--timeout', 'timeout', type=float, default=None, help='Timeout of the whole run (seconds)')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save a JSON report'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save an HTML report'
)
@click.option(
    '--template', '-t', 'template_dir',
    default='templates',
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help='Folder with the Jinja2 template'
)
@click.option('--pretty', is_flag=True, help='Print an indented JSON summary after the run')
@click.pass_context
def crawl(ctx, policy, seed_url, max_steps, random_seed, timeout, json_output, html_output, template_dir, pretty):
    """Run a traversal and print one line per event."""
    cfg = _load(ctx, policy=policy, seed_url=seed_url, max_steps=max_steps, random_seed=random_seed)
    if cfg.policy is Policy.HARVEST:
        print_error("policy 'harvest' runs through the harvest command")
    click.echo(f'Starting {cfg.policy.value} traversal from {cfg.seed_url}', err=True)

    result = _run(start_traversal(cfg, ConsoleSink()), timeout)

    if pretty:
        click.echo(result.json(pretty=True))
    _save_reports(result, json_output, html_output, template_dir)


@cli.command('harvest', context_settings=CONTEXT_SETTINGS)
@click.option('--timeout', 'timeout', type=float, default=None, help='Timeout of the whole run (seconds)')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save a JSON report'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save an HTML report'
)
@click.option(
    '--template', '-t', 'template_dir',
    default='templates',
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help='Folder with the Jinja2 template'
)
@click.pass_context
def harvest(ctx, timeout, json_output, html_output, template_dir):
    """Print title and body of every target page of the configured sites."""
    cfg = _load(ctx, policy=Policy.HARVEST.value)
    results = _run(start_harvest(cfg, ConsoleSink()), timeout)
    _save_reports(results, json_output, html_output, template_dir)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the current configuration as JSON."""
    cfg = _load(ctx)
    click.echo(cfg.model_dump_json(indent=2))


# expose these names at module level for test monkey-patching
cli.start_traversal = start_traversal
cli.start_harvest = start_harvest

if __name__ == "__main__":
    cli()
