"""
Git hook commands for profilekit.

``profilekit hook <name>`` is what the installed shims exec; git passes
the hook arguments (and, for pre-push, the ref lines on stdin) straight
through. ``profilekit hooks install|uninstall`` manages the shims.
"""

import click

from ..cli_utils import add_common_options, get_command_config, resolve_format, standard_command
from ..config import COMMIT_TYPES
from ..exit_codes import ValidationFailedError
from ..render import render_summary
from ..services.hook_service import HOOK_NAMES, HookService


def _fail_on_errors(summary, hook_name: str):
    if not summary.success:
        raise ValidationFailedError(
            f"{hook_name} failed: " + "; ".join(summary.errors or ["see output above"]),
            failures=summary.failed,
        )


@click.group("hook")
def hook_cmd():
    """Run a git hook (called by the installed hook scripts)."""
    pass


@hook_cmd.command("commit-msg")
@click.argument("message_file", type=click.Path(dir_okay=False))
@add_common_options('verbose')
@standard_command(machine_errors=False)
def commit_msg_handler(message_file, verbose, progress):
    """Validate the subject line of MESSAGE_FILE.

    Exits 1 with the reason on stderr when the subject is rejected.
    """
    config = get_command_config()
    result = HookService(config=config).commit_msg(message_file)
    if not result.accepted:
        types = config.get('commit', {}).get('types', COMMIT_TYPES)
        raise ValidationFailedError(
            f"Commit message rejected: {result.reason}\n"
            f"  subject:  {result.subject!r}\n"
            f"  expected: <type>(<scope>): <description>  (types: {', '.join(types)})"
        )
    progress.success(f"Commit message accepted: {result.subject}")


@hook_cmd.command("pre-commit")
@add_common_options('verbose')
@standard_command(machine_errors=False)
def pre_commit_handler(verbose, progress):
    """Format staged files, re-stage them and run the validation suite."""
    service = HookService(config=get_command_config())
    summary = progress.drain(service.pre_commit(), prefix="pre-commit: ")
    if verbose or not summary.success:
        render_summary(summary, title="pre-commit")
    _fail_on_errors(summary, "pre-commit")


@hook_cmd.command("pre-push")
@click.argument("remote", required=False)
@click.argument("url", required=False)
@add_common_options('verbose')
@standard_command(machine_errors=False)
def pre_push_handler(remote, url, verbose, progress):
    """Validate pushed commit subjects and run the validation suite.

    Reads the ``<local ref> <local sha> <remote ref> <remote sha>`` lines
    git writes to stdin.
    """
    stdin = click.get_text_stream('stdin')
    ref_lines = [] if stdin.isatty() else stdin.read().splitlines()

    service = HookService(config=get_command_config())
    summary = progress.drain(service.pre_push(remote, url, ref_lines), prefix="pre-push: ")
    if verbose or not summary.success:
        render_summary(summary, title="pre-push")
    _fail_on_errors(summary, "pre-push")


@click.group("hooks")
def hooks_cmd():
    """Install or remove profilekit git hooks."""
    pass


@hooks_cmd.command("install")
@click.option("--hook", "hooks", multiple=True, type=click.Choice(HOOK_NAMES),
              help="Hook to install (repeatable; default: all)")
@click.option("--force", is_flag=True, help="Replace existing hooks, keeping them as <name>.bak")
@add_common_options('verbose', 'dry_run', 'format')
@standard_command()
def install_handler(hooks, force, verbose, dry_run, output_format, progress):
    """Install hook scripts into the current repository.

    Examples:

        profilekit hooks install

        profilekit hooks install --hook commit-msg --force
    """
    summary = HookService(config=get_command_config()).install(hooks, force=force, dry_run=dry_run)
    if resolve_format(output_format) != 'table':
        return [d.to_dict() for d in summary.details] + [summary.to_dict()]
    render_summary(summary, title="Git hooks")


@hooks_cmd.command("uninstall")
@click.option("--hook", "hooks", multiple=True, type=click.Choice(HOOK_NAMES),
              help="Hook to remove (repeatable; default: all)")
@add_common_options('verbose', 'dry_run', 'format')
@standard_command()
def uninstall_handler(hooks, verbose, dry_run, output_format, progress):
    """Remove profilekit hook scripts, restoring any backed-up hooks."""
    summary = HookService(config=get_command_config()).uninstall(hooks, dry_run=dry_run)
    if resolve_format(output_format) != 'table':
        return [d.to_dict() for d in summary.details] + [summary.to_dict()]
    render_summary(summary, title="Git hooks")
