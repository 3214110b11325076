#!/usr/bin/env python3

import click
from pathlib import Path

from extmirror.cli_utils import init_context
from extmirror.commands.parse import parse_handler
from extmirror.commands.tag import tag_handler
from extmirror.commands.queue import clearqueue_handler, queue_cmd
from extmirror.commands.config import config_cmd


@click.group()
@click.version_option(package_name='extmirror')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              default=None, envvar='EXTMIRROR_CONFIG',
              help='Configuration file (default: ~/.extmirror/config.*)')
@click.option('-v', '--verbose', is_flag=True, help='Debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """extmirror - Mirror extension repository releases into git repositories.

    \b
    Pipeline:
        extmirror parse extensions.xml.gz   plan and queue unmirrored versions
        extmirror tag                       mirror one queued package
        extmirror clearqueue                drop every queued job
    """
    init_context(ctx, config_path, verbose)


# Pipeline commands
cli.add_command(parse_handler, name='parse')
cli.add_command(tag_handler, name='tag')
cli.add_command(clearqueue_handler, name='clearqueue')

# Command groups
cli.add_command(queue_cmd)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
