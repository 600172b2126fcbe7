"""
Development environment setup command for profilekit.
"""

import click

from ..cli_utils import add_common_options, get_command_config, resolve_format, standard_command
from ..render import render_summary, render_tool_checks
from ..services.setup_service import SetupService


@click.command("setup")
@click.option("--no-hooks", is_flag=True, help="Do not install git hooks")
@click.option("--force-hooks", is_flag=True, help="Replace existing git hooks (kept as <name>.bak)")
@add_common_options('verbose', 'dry_run', 'format')
@standard_command()
def setup_handler(no_hooks, force_hooks, verbose, dry_run, output_format, progress):
    """Check tools and prepare the development environment.

    Verifies required and optional tools (with minimum versions), writes a
    default configuration, creates the metrics directory and installs the
    git hooks when run inside a repository.

    Examples:

        profilekit setup --dry-run

        profilekit setup --no-hooks
    """
    service = SetupService(config=get_command_config())
    report = progress.drain(service.run(dry_run=dry_run, install_hooks=not no_hooks,
                                        force_hooks=force_hooks))

    if resolve_format(output_format) != 'table':
        return report.to_dict()
    render_tool_checks(report.checks)
    render_summary(report.summary, title="Setup")
