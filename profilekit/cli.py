#!/usr/bin/env python3

import click
import sys

from profilekit import __version__
from profilekit.config import configure_logging, load_config
from profilekit.exit_codes import SETUP_ERROR, ConfigError

# Command groups
from profilekit.commands.hooks import hook_cmd, hooks_cmd
from profilekit.commands.commits import commits_cmd
from profilekit.commands.convert import convert_cmd
from profilekit.commands.metrics import metrics_cmd
from profilekit.commands.verify import tests_cmd
from profilekit.commands.config import config_cmd

# Individual commands
from profilekit.commands.dev import setup_handler


@click.group()
@click.version_option(version=__version__, prog_name="profilekit")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Configuration file (default: $PROFILEKIT_CONFIG, ./.profilekit.*, ~/.profilekit/config.*)")
@click.option("--verbose", is_flag=True, help="Log informational messages")
@click.option("--debug", is_flag=True, help="Log debug messages")
@click.pass_context
def cli(ctx, config_path, verbose, debug):
    """profilekit - developer-experience tools.

    Git hooks with conventional-commit validation, a catalogue of
    format conversions over external tools, code metrics history,
    test-suite verification and development environment setup.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    try:
        configure_logging(load_config(config_path), verbose=verbose, debug=debug)
    except ConfigError as e:
        click.echo(f"ERROR: {e}", err=True)
        ctx.exit(SETUP_ERROR)


# Git hooks
cli.add_command(hook_cmd)
cli.add_command(hooks_cmd)
cli.add_command(commits_cmd)

# Tools
cli.add_command(convert_cmd)
cli.add_command(metrics_cmd)
cli.add_command(tests_cmd)
cli.add_command(setup_handler)
cli.add_command(config_cmd)


def main():
    return cli()


if __name__ == "__main__":
    sys.exit(main() or 0)
