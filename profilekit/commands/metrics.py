"""
Metrics commands for profilekit.

Snapshots live as one JSON file each in the metrics directory
(``metrics.directory`` in the config, default ``~/.profilekit/metrics``).
"""

import json

import click
from rich.markup import escape

from ..cli_utils import add_common_options, get_command_config, resolve_format, standard_command
from ..format_utils import FORMATS, write_output
from ..render import console, render_dashboard, render_metrics, render_trends
from ..services.metrics_service import MetricsService


def _service(ctx, root=None) -> MetricsService:
    return MetricsService(config=get_command_config(), root=root, metrics_dir=ctx.obj.get('metrics_dir'))


@click.group("metrics")
@click.option("--dir", "metrics_dir", type=click.Path(file_okay=False),
              help="Snapshot directory (default from config)")
@click.pass_context
def metrics_cmd(ctx, metrics_dir):
    """Collect code metrics and track them over time."""
    ctx.ensure_object(dict)
    ctx.obj['metrics_dir'] = metrics_dir


@metrics_cmd.command("collect")
@click.option("--root", type=click.Path(exists=True, file_okay=False),
              help="Project directory (default: current directory)")
@add_common_options('format')
@click.pass_context
@standard_command()
def collect_handler(ctx, root, output_format, progress):
    """Show current code metrics without saving them."""
    metrics = _service(ctx, root).collect()
    if resolve_format(output_format) != 'table':
        return metrics.to_dict()
    render_metrics(metrics.to_dict())


@metrics_cmd.command("snapshot")
@click.option("--root", type=click.Path(exists=True, file_okay=False),
              help="Project directory (default: current directory)")
@add_common_options('format')
@click.pass_context
@standard_command()
def snapshot_handler(ctx, root, output_format, progress):
    """Collect metrics and save them as a timestamped snapshot."""
    snapshot, path = _service(ctx, root).snapshot()
    if resolve_format(output_format) != 'table':
        return dict(snapshot.to_dict(), path=str(path))
    render_metrics(snapshot.metrics.to_dict(), title=f"Snapshot {snapshot.snapshot_id}")
    console.print(f"Saved to {escape(str(path))}")


@metrics_cmd.command("trends")
@click.option("--limit", type=int, help="Only the most recent N snapshots")
@add_common_options('format')
@click.pass_context
@standard_command()
def trends_handler(ctx, limit, output_format, progress):
    """Show coverage and size trends across snapshots."""
    trends = _service(ctx).trends(limit=limit)
    fmt = resolve_format(output_format)
    if fmt == 'table':
        render_trends(trends)
        return None
    if fmt in ('json', 'yaml'):
        return trends
    return trends['series']


@metrics_cmd.command("dashboard")
@click.option("--json", "output_json", is_flag=True, help="Print the dashboard data as JSON")
@click.option("--output", type=click.Path(dir_okay=False), help="Write the dashboard JSON to a file")
@click.option("--history", type=int, default=10, show_default=True, help="History rows to include")
@click.pass_context
@standard_command()
def dashboard_handler(ctx, output_json, output, history, progress):
    """Show the metrics dashboard (latest, change, history)."""
    data = _service(ctx).dashboard(history=history)
    if output:
        write_output([json.dumps(data, indent=2, ensure_ascii=False)], output)
        progress(f"Dashboard data written to {output}")
    elif output_json:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        render_dashboard(data)


@metrics_cmd.command("export")
@click.option("-f", "--format", "export_format", type=click.Choice(FORMATS), default="json",
              show_default=True, help="Export format")
@click.option("--output", type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
@click.pass_context
@standard_command()
def export_handler(ctx, export_format, output, progress):
    """Export the snapshot history."""
    chunks = list(_service(ctx).export(export_format))
    write_output(chunks, output)
    if output:
        progress(f"Exported metrics history to {output}")
