"""
Worker command: mirror queued packages into their repositories.
"""

import click

from rich.console import Console
from rich.table import Table

from ..cli_utils import add_common_options, get_config, get_queue, output_result, standard_command
from ..domain.operation import JobSummary, OperationStatus
from ..exit_codes import PartialSuccessError
from ..services.mirror_worker_service import RepositoryMirrorWorker

console = Console()


def show_job_summary(summary: JobSummary):
    """Render the per-version outcome of one job."""
    table = Table(title=f"Job #{summary.job_id}: {summary.package_key or '?'}")
    table.add_column("Version", style="bold")
    table.add_column("Status")
    table.add_column("Stage")
    table.add_column("Error")

    for outcome in summary.outcomes:
        style = "green" if outcome.status == OperationStatus.SUCCESS else "red"
        table.add_row(
            outcome.number,
            f"[{style}]{outcome.status.value}[/{style}]",
            outcome.stage.value,
            outcome.error or "",
        )

    console.print(table)
    if summary.error:
        console.print(f"[red]{summary.error}[/red]")


@click.command('tag')
@click.option('--forever', is_flag=True, help='Keep consuming jobs until terminated')
@add_common_options('timeout', 'json')
@click.pass_context
@standard_command
def tag_handler(ctx, forever, timeout, json_output):
    """Reserve a job, commit, tag and push its versions, then delete it.

    Without --forever exactly one job is processed. The job is deleted from
    the queue even if some versions fail; the next planning run queues them
    again while their tags are missing.

    Examples:

    \b
        extmirror tag
        extmirror tag --forever
        extmirror tag --timeout 30 --json
    """
    config = get_config(ctx)
    worker = RepositoryMirrorWorker(config, queue=get_queue(config))

    click.echo("Starting the tagger", err=True)
    failed = 0
    while True:
        summary = worker.run_once(timeout=timeout)
        if summary is None:
            click.echo("No job available", err=True)
            if not forever:
                break
            continue

        if json_output:
            output_result(summary.to_dict())
        else:
            show_job_summary(summary)

        if not summary.success:
            failed += 1
        if not forever:
            break

    if failed:
        raise PartialSuccessError(f"{failed} job(s) finished with failed versions", failed=failed)
