"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps
from typing import Any, Generator, Optional
from .config import load_config
from .progress import get_progress
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .format_utils import FORMATS, format_output, get_format_from_env


def standard_command(func=None, *, machine_errors: bool = True):
    """
    Decorator that provides standard CLI behavior:
    - Progress reporting on stderr (injected as the ``progress`` kwarg)
    - Data output on stdout in the requested ``--format``
    - Exceptions mapped to exit codes, with the message on stderr

    A command returns None when it prints its own (table) output, or a
    dict, list or generator of dicts for machine formats.

    Args:
        machine_errors: Also print a JSON error object on stdout when a
            machine format (json/jsonl) is selected.
    """
    def decorator(func):

        @wraps(func)
        def wrapper(*args, **kwargs):
            verbose = kwargs.get('verbose', False)
            output_format = kwargs.get('output_format') or get_format_from_env()

            progress = get_progress(enabled=True if verbose else None)
            kwargs['progress'] = progress

            try:
                result = func(*args, **kwargs)

                if result is not None and output_format in FORMATS:
                    if isinstance(result, dict):
                        result = [result]
                    for chunk in format_output(iter(result), output_format):
                        print(chunk, flush=True)
                elif isinstance(result, Generator):
                    for _ in result:
                        pass

                sys.exit(SUCCESS)

            except KeyboardInterrupt:
                progress.error("Interrupted by user")
                sys.exit(INTERRUPTED)
            except click.exceptions.Exit:
                raise
            except click.ClickException:
                # Click exceptions already have their exit code
                raise
            except CommandError as e:
                progress.error(str(e))
                if machine_errors and output_format in ('json', 'jsonl'):
                    print(json.dumps({
                        "error": str(e),
                        "type": type(e).__name__,
                        "exit_code": e.exit_code,
                    }, ensure_ascii=False), flush=True)
                sys.exit(e.exit_code)
            except Exception as e:
                progress.error(f"Command failed: {e}")
                if machine_errors and output_format in ('json', 'jsonl'):
                    print(json.dumps({
                        "error": str(e),
                        "type": type(e).__name__,
                    }, ensure_ascii=False), flush=True)
                sys.exit(get_exit_code_for_exception(e))

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def get_command_config() -> dict:
    """Load configuration, honouring ``profilekit --config PATH``."""
    ctx = click.get_current_context(silent=True)
    root_obj = ctx.find_root().obj if ctx else None
    path = root_obj.get('config_path') if isinstance(root_obj, dict) else None
    return load_config(path)


def resolve_format(output_format: Optional[str]) -> str:
    return output_format or get_format_from_env()


def output_result(result: Any, output_format: str = 'jsonl'):
    """
    Print a dict, list or generator of dicts in a machine format.

    Used by commands that must emit data before raising a CommandError.
    """
    if isinstance(result, dict):
        result = [result]
    for chunk in format_output(iter(result), output_format if output_format in FORMATS else 'jsonl'):
        print(chunk, flush=True)


# Standard options that many commands share
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                            help='Show progress even when stderr is not a terminal'),
    'dry_run': click.option('--dry-run', is_flag=True,
                            help='Show what would be done without changing anything'),
    'format': click.option('-f', '--format', 'output_format',
                           type=click.Choice(('table',) + FORMATS),
                           help='Output format (default: table, or from PROFILEKIT_FORMAT env)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('verbose', 'dry_run')
        def my_command(verbose, dry_run):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
