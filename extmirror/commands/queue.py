"""
Queue administration commands.
"""

import click

from rich.console import Console

from ..cli_utils import add_common_options, get_config, get_queue, output_result, standard_command
from ..services.queue_drainer_service import QueueDrainer

console = Console()


@click.command('clearqueue')
@click.option('--tube', default=None, help='Tube to drain (default: queue.tube from config)')
@click.pass_context
@standard_command
def clearqueue_handler(ctx, tube):
    """Reserve and delete every pending job.

    Resets the pipeline so the next planning run starts from an empty queue.
    """
    config = get_config(ctx)
    queue_config = config.get('queue', {})
    tube = tube or queue_config.get('tube', 'extensions')

    drainer = QueueDrainer(get_queue(config), timeout=queue_config.get('drain_timeout_seconds', 1))
    deleted = drainer.drain(tube)
    console.print(f"Deleted {deleted} job(s) from [bold]{tube}[/bold]")


@click.group('queue')
def queue_cmd():
    """Inspect the job queue."""
    pass


@queue_cmd.command('stats')
@click.option('--tube', default=None, help='Tube to inspect (default: queue.tube from config)')
@add_common_options('json')
@click.pass_context
@standard_command
def queue_stats(ctx, tube, json_output):
    """Show how many jobs are ready and reserved."""
    config = get_config(ctx)
    tube = tube or config.get('queue', {}).get('tube', 'extensions')
    stats = get_queue(config).stats(tube)

    if json_output:
        output_result(stats.to_dict())
    else:
        console.print(
            f"[bold]{stats.tube}[/bold]: {stats.ready} ready, {stats.reserved} reserved"
        )
