import click
import json
from pathlib import Path

from ..cli_utils import get_command_config, standard_command
from ..config import generate_default_config, get_config_dir, get_config_path


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("generate")
@click.option("--path", "path", type=click.Path(dir_okay=False),
              help="Where to write (default: ~/.profilekit/config.json); .toml/.yaml suffixes pick the format")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@standard_command()
def generate_config(path, force, progress):
    """Write the default configuration file."""
    target = path or str(get_config_dir() / 'config.json')
    written = generate_default_config(target, force=force)
    if written is None:
        click.echo(f"Configuration already exists at {target} (use --force to overwrite)")
    else:
        click.echo(f"Default configuration written to {written}")


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@standard_command()
def show_config(pretty, progress):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    """
    config = get_command_config()

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("path")
@click.pass_context
@standard_command()
def show_path(ctx, progress):
    """Show the config file being used."""
    root_obj = ctx.find_root().obj
    explicit = root_obj.get('config_path') if isinstance(root_obj, dict) else None
    config_path = Path(explicit) if explicit else get_config_path()
    print(json.dumps({"config_path": str(config_path), "exists": config_path.exists()}))
