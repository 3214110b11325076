"""
Planning command: parse the package list and fill the job queue.
"""

import click
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..cli_utils import add_common_options, get_config, get_queue, output_result, standard_command
from ..domain.operation import PlanOutcome, PlanReport
from ..package_list import load_packages, parse_key_filter
from ..services.planner_service import VersionDiffPlanner

console = Console()

OUTCOME_STYLES = {
    PlanOutcome.QUEUED: "green",
    PlanOutcome.DRY_RUN: "cyan",
    PlanOutcome.ALREADY_MIRRORED: "dim",
    PlanOutcome.UNRESOLVED: "red",
}


def show_plan_table(report: PlanReport):
    """Render a plan report as a table."""
    table = Table(title="Mirroring plan")
    table.add_column("Package", style="bold")
    table.add_column("Outcome")
    table.add_column("Pending versions")
    table.add_column("Already tagged", justify="right")
    table.add_column("Unreviewed")
    table.add_column("Job", justify="right")

    for plan in report.plans:
        style = OUTCOME_STYLES.get(plan.outcome, "white")
        table.add_row(
            plan.package.key,
            f"[{style}]{plan.outcome.value}[/{style}]",
            ", ".join(plan.pending) if plan.outcome != PlanOutcome.UNRESOLVED else "-",
            str(len(plan.already_tagged)),
            ", ".join(plan.flagged) or "-",
            plan.job_id or "-",
        )

    console.print(table)
    summary = report.to_dict()
    console.print(
        f"{summary['total']} packages: {summary['queued']} queued, "
        f"{summary['already_mirrored']} already mirrored, {summary['unresolved']} unresolved"
    )


@click.command('parse')
@click.argument('extensionlist', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('extensions', required=False, default='')
@add_common_options('dry_run', 'json')
@click.pass_context
@standard_command
def parse_handler(ctx, extensionlist, extensions, dry_run, json_output):
    """Diff published versions against mirrored tags and queue the rest.

    EXTENSIONLIST: extension list document (extensions.xml or .xml.gz)

    EXTENSIONS: optional comma-separated package keys to restrict planning to

    Examples:

    \b
        extmirror parse extensions.xml.gz
        extmirror parse extensions.xml.gz news,tt_address
        extmirror parse extensions.xml.gz news --dry-run
    """
    config = get_config(ctx)
    keys = parse_key_filter(extensions)

    click.echo(f"Starting parser (file: {extensionlist})", err=True)
    if keys:
        click.echo(f'\tincluding the extensions "{extensions}".', err=True)

    packages = load_packages(extensionlist, keys)
    queue = None if dry_run else get_queue(config)
    planner = VersionDiffPlanner(config, queue=queue)
    report = planner.run(packages, enqueue=not dry_run)

    if json_output:
        output_result([plan.to_dict() for plan in report.plans])
        output_result(report.to_dict())
    else:
        show_plan_table(report)
