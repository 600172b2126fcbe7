"""
Commit message commands for profilekit.
"""

import click
from rich.markup import escape

from ..cli_utils import (
    add_common_options,
    get_command_config,
    output_result,
    resolve_format,
    standard_command,
)
from ..domain.commit import validate_with_config
from ..exit_codes import ValidationFailedError
from ..render import console, render_commit_check
from ..services.hook_service import HookService


@click.group("commits")
def commits_cmd():
    """Validate conventional-commit messages."""
    pass


@commits_cmd.command("validate")
@click.argument("subject")
@add_common_options('format')
@standard_command()
def validate_handler(subject, output_format, progress):
    """Validate a single commit SUBJECT.

    Examples:

        profilekit commits validate "feat(cli): add foo"
    """
    result = validate_with_config(subject, get_command_config())
    fmt = resolve_format(output_format)

    if fmt == 'table':
        if result.accepted:
            console.print(f"[green]ACCEPT[/green] {escape(result.subject)}")
        else:
            console.print(f"[red]REJECT[/red] {escape(repr(result.subject))}")
    else:
        output_result(result.to_dict(), fmt)

    if not result.accepted:
        raise ValidationFailedError(result.reason or "Commit subject rejected")


@commits_cmd.command("check")
@click.argument("revisions", nargs=-1)
@click.option("-n", "--count", type=int, help="Number of commits to check (default from config: 20)")
@add_common_options('verbose', 'format')
@standard_command()
def check_handler(revisions, count, verbose, output_format, progress):
    """Validate the subjects of recent commits.

    REVISIONS are passed to git log (e.g. origin/main..HEAD); without them
    the last N commits on HEAD are checked.

    Examples:

        profilekit commits check

        profilekit commits check origin/main..HEAD
    """
    service = HookService(config=get_command_config())
    results = service.check_commits(list(revisions) or None, limit=count)
    rejected = [(c, r) for c, r in results if not r.accepted]

    fmt = resolve_format(output_format)
    if fmt == 'table':
        render_commit_check(results)
    elif results:
        output_result([dict(r.to_dict(), commit=c.short_hash) for c, r in results], fmt)

    if rejected:
        for commit, result in rejected:
            progress.warning(f"{commit.short_hash} {result.subject!r}: {result.reason}")
        raise ValidationFailedError(
            f"{len(rejected)} of {len(results)} commit message(s) rejected",
            failures=len(rejected),
        )
