"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps
from typing import Any, Dict

import redis
from rich.console import Console

from .config import ConfigLoadError, configure_logging, load_config
from .exit_codes import (
    INTERRUPTED,
    CommandError,
    ConfigError,
    QueueError,
    get_exit_code_for_exception,
)
from .infra.queue_client import JobQueueClient

err_console = Console(stderr=True)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Broker connection loss reported as QueueError
    - Consistent error messages on stderr
    - Exit codes from exit_codes
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            try:
                return func(*args, **kwargs)
            except redis.exceptions.ConnectionError as e:
                raise QueueError(f"Queue broker unreachable: {e}") from e
        except KeyboardInterrupt:
            err_console.print("[yellow]Interrupted by user[/yellow]")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            err_console.print(f"[red]Error:[/red] {e}")
            sys.exit(e.exit_code)
        except Exception as e:
            err_console.print(f"[red]Command failed:[/red] {e}")
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def init_context(ctx: click.Context, config_path, verbose: bool) -> Dict[str, Any]:
    """Load configuration into ``ctx.obj`` and set up logging."""
    try:
        config = load_config(config_path)
    except ConfigLoadError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        sys.exit(ConfigError(str(e)).exit_code)
    configure_logging(config, verbose=verbose)
    ctx.obj = {'config': config}
    return config


def get_config(ctx: click.Context) -> Dict[str, Any]:
    obj = ctx.find_root().obj or {}
    if 'config' not in obj:
        obj['config'] = load_config()
        ctx.find_root().obj = obj
    return obj['config']


def get_queue(config: Dict[str, Any]) -> JobQueueClient:
    return JobQueueClient.from_config(config)


def output_result(result: Any):
    """Print a dict or list of dicts as JSONL on stdout."""
    if isinstance(result, (list, tuple)):
        for item in result:
            print(json.dumps(item, ensure_ascii=False), flush=True)
    elif isinstance(result, dict):
        print(json.dumps(result, ensure_ascii=False), flush=True)


# Standard options that many commands share
common_options = {
    'json': click.option('--json', 'json_output', is_flag=True,
                         help='Output as JSONL instead of a table'),
    'dry_run': click.option('--dry-run', is_flag=True,
                            help='Compute the plan without enqueueing anything'),
    'timeout': click.option('--timeout', type=float, default=None,
                            help='Seconds to wait for a job (default: wait forever)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('json', 'dry_run')
        def my_command(json_output, dry_run):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
