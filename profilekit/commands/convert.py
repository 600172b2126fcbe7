"""
Format conversion commands for profilekit.

Every conversion delegates to one external tool (ffmpeg, sqlite3, yq,
iconv, base64, xxd, or Python with dbfread). A conversion whose tool is
missing is reported as skipped; run on its own it exits with the setup
error code.
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
from ..conversions import CATEGORIES, TOOLS, format_for_path, list_conversions
from ..domain.operation import OperationStatus
from ..exit_codes import RUNTIME_ERROR, CommandError, InputError, ToolUnavailableError, ValidationFailedError
from ..render import console, render_conversions, render_summary, render_tool_status
from ..services.conversion_service import ConversionService


def parse_options(values) -> dict:
    """Turn repeated ``-o key=value`` options into a dict."""
    options = {}
    for value in values:
        key, sep, val = value.partition('=')
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", param_hint="'-o/--option'")
        options[key.strip()] = val
    return options


def _raise_for_summary(summary, what: str):
    """Map a multi-step conversion summary to the matching CommandError."""
    failed = [d for d in summary.details if d.status is OperationStatus.FAILED]
    if failed:
        raise CommandError(f"{what}: {len(failed)} conversion(s) failed: " + "; ".join(summary.errors),
                           RUNTIME_ERROR)
    skipped = [d for d in summary.details if d.status is OperationStatus.SKIPPED]
    if skipped:
        raise ToolUnavailableError(skipped[0].tool or "", f"{what}: {skipped[0].message}")


option_option = click.option("-o", "--option", "options", multiple=True, metavar="KEY=VALUE",
                             help="Conversion option, e.g. table=users, bitrate=192k, encoding=cp1252")


@click.group("convert")
def convert_cmd():
    """Convert files between formats using external tools."""
    pass


@convert_cmd.command("list")
@click.option("--category", type=click.Choice(CATEGORIES), help="Only conversions in this category")
@click.option("--tool", type=click.Choice(sorted(TOOLS)), help="Only conversions using this tool")
@add_common_options('format')
@standard_command()
def list_handler(category, tool, output_format, progress):
    """List the available conversions."""
    conversions = list_conversions(category=category, tool=tool)
    if resolve_format(output_format) != 'table':
        return [c.to_dict() for c in conversions]
    render_conversions(conversions)


@convert_cmd.command("tools")
@add_common_options('format')
@standard_command()
def tools_handler(output_format, progress):
    """Show which conversion tools are installed."""
    statuses = ConversionService(config=get_command_config()).tool_status()
    if resolve_format(output_format) != 'table':
        return [s.to_dict() for s in statuses]
    render_tool_status(statuses)


@convert_cmd.command("run")
@click.argument("input_path", type=click.Path())
@click.argument("output_path", type=click.Path())
@click.option("-n", "--name", help="Conversion name, e.g. csv-to-json (default: from the file extensions)")
@option_option
@add_common_options('verbose', 'dry_run', 'format')
@standard_command()
def run_handler(input_path, output_path, name, options, verbose, dry_run, output_format, progress):
    """Convert INPUT_PATH to OUTPUT_PATH.

    Examples:

        profilekit convert run data.csv data.json

        profilekit convert run app.db users.csv -n sqlite-to-csv -o table=users

        profilekit convert run song.wav song.mp3 -o bitrate=192k
    """
    service = ConversionService(config=get_command_config())
    result = service.convert_or_raise(name, input_path, output_path, parse_options(options), dry_run=dry_run)

    if resolve_format(output_format) != 'table':
        return result.to_dict()
    if result.status is OperationStatus.DRY_RUN:
        console.print(f"[cyan]\\[dry run][/cyan] {escape(' '.join(result.metadata['command']))}")
    else:
        console.print(f"[green]✓[/green] {result.name}: "
                      f"{escape(str(result.input_path))} -> {escape(str(result.output_path))}")


@convert_cmd.command("batch")
@click.argument("name")
@click.argument("output_dir", type=click.Path(file_okay=False))
@click.argument("inputs", nargs=-1, required=True, type=click.Path())
@option_option
@add_common_options('verbose', 'dry_run', 'format')
@standard_command()
def batch_handler(name, output_dir, inputs, options, verbose, dry_run, output_format, progress):
    """Run conversion NAME over INPUTS, writing into OUTPUT_DIR.

    Inputs whose tool is missing are skipped and do not fail the batch.
    Inputs sharing a file stem would share an output, so later ones fail.

    Examples:

        profilekit convert batch wav-to-flac out/ *.wav
    """
    service = ConversionService(config=get_command_config())
    summary = progress.drain(service.convert_batch(name, inputs, output_dir, parse_options(options),
                                                   dry_run=dry_run))

    fmt = resolve_format(output_format)
    if fmt == 'table':
        render_summary(summary, title=f"Batch {name}")
    else:
        output_result([d.to_dict() for d in summary.details] + [summary.to_dict()], fmt)

    if not summary.success:
        raise CommandError(f"{summary.failed} of {summary.total} conversion(s) failed", RUNTIME_ERROR)


@convert_cmd.command("chain")
@click.argument("input_path", type=click.Path())
@click.argument("output_path", type=click.Path())
@click.option("--via", multiple=True, required=True, help="Intermediate format (repeatable, in order)")
@click.option("--from", "source_format", help="Source format (default: from the input extension)")
@click.option("--to", "target_format", help="Target format (default: from the output extension)")
@option_option
@add_common_options('verbose', 'format')
@standard_command()
def chain_handler(input_path, output_path, via, source_format, target_format, options, verbose,
                  output_format, progress):
    """Convert INPUT_PATH through intermediate formats into OUTPUT_PATH.

    Examples:

        profilekit convert chain data.csv data.toml --via json --via yaml
    """
    source = source_format or format_for_path(input_path)
    target = target_format or format_for_path(output_path)
    if not source or not target:
        raise InputError("Cannot infer the formats from the file extensions; pass --from/--to")

    service = ConversionService(config=get_command_config())
    formats = [source] + list(via) + [target]
    summary = progress.drain(service.chain(input_path, formats, output_path, parse_options(options)))

    fmt = resolve_format(output_format)
    if fmt == 'table':
        render_summary(summary, title=" -> ".join(formats))
    else:
        output_result([d.to_dict() for d in summary.details], fmt)

    if summary.successful != len(formats) - 1:
        _raise_for_summary(summary, "Chain stopped")


@convert_cmd.command("roundtrip")
@click.argument("input_path", type=click.Path())
@click.option("--via", multiple=True, required=True, help="Intermediate format (repeatable, in order)")
@click.option("--from", "source_format", help="Format of INPUT_PATH (default: from the extension)")
@option_option
@add_common_options('verbose', 'format')
@standard_command()
def roundtrip_handler(input_path, via, source_format, options, verbose, output_format, progress):
    """Convert INPUT_PATH away and back, and compare the bytes.

    Exits 1 when the result differs from the original.

    Examples:

        profilekit convert roundtrip notes.txt --via base64
    """
    service = ConversionService(config=get_command_config())
    result = progress.drain(service.round_trip(input_path, list(via), source_format, parse_options(options)))

    fmt = resolve_format(output_format)
    if fmt != 'table':
        output_result(result.to_dict(), fmt)
    elif result.identical:
        console.print(f"[green]✓ identical[/green] {escape(' -> '.join(result.formats))}")
    elif result.identical is False:
        console.print(f"[red]✗ differs[/red] {escape(' -> '.join(result.formats))}")
    elif result.summary:
        render_summary(result.summary, title=" -> ".join(result.formats))

    if result.identical is None:
        _raise_for_summary(result.summary, "Round trip incomplete")
    if result.identical is False:
        raise ValidationFailedError(f"Round trip through {', '.join(via)} changed {input_path}")


