import click
import json
from pathlib import Path

from ..cli_utils import get_config
from ..config import get_config_path, get_default_config, save_config


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.option("--reveal-token", is_flag=True, help="Print the GitHub token instead of masking it")
@click.pass_context
def show_config(ctx, pretty, path, reveal_token):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = json.loads(json.dumps(get_config(ctx)))
    if config.get("github", {}).get("token") and not reveal_token:
        config["github"]["token"] = "***"

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("init")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="File to write (default: ~/.extmirror/config.json); .yaml/.yml writes YAML")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(output, force):
    """Write the default configuration to a file."""
    target = output or get_config_path()
    if target.exists() and not force:
        click.echo(f"Configuration already exists at {target}. Use --force to overwrite.", err=True)
        raise click.Abort()

    written = save_config(get_default_config(), target)
    click.echo(f"Default configuration written to {written}")
