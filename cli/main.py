#!/usr/bin/env python3
"""
CLI for validating and running cron workflows locally.

Usage:
    cron-workflow validate workflow.json
    cron-workflow run workflow.json --job '{"id": "job-1", "dispatch": {"channel": "console"}}'
"""
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box
from rich.markup import escape

# Load .env before reading configuration
load_dotenv()

from cron_workflow.compiler.parse import parse_job_spec, parse_workflow_spec  # noqa: E402
from cron_workflow.errors import WorkflowCompilerError  # noqa: E402
from cron_workflow.registry.node_registry import NodeRegistry  # noqa: E402
from cron_workflow.runtime.clock import new_run_id, now_iso  # noqa: E402
from cron_workflow.runtime.nodes import register_builtin_handlers, sleep_delay  # noqa: E402
from cron_workflow.runtime.service import WorkflowService  # noqa: E402
from cron_workflow.schema.models import CronJobSpec, NodeStatus, Plan, WorkflowExecution  # noqa: E402
from shared.config import config as workflow_config  # noqa: E402
from shared.logger import get_logger  # noqa: E402

console = Console()

STATUS_STYLES = {
    NodeStatus.succeeded: "green",
    NodeStatus.failed: "red",
    NodeStatus.skipped: "yellow",
}


@click.group()
@click.version_option(version="0.1.0", prog_name="cron-workflow")
@click.option('--verbose', '-v', is_flag=True, help='Log engine activity at DEBUG level')
def cli(verbose: bool):
    """
    Validate and run cron workflows.

    \b
    Commands:
      validate - Compile a workflow and show its execution order
      run      - Run a workflow with the builtin node handlers
      config   - Show current configuration
    """
    get_logger("cron_workflow", logging.DEBUG if verbose else workflow_config.log_level)


def _read_payload(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"Cannot read {path}: {exc}") from exc


def _build_service(echo_text: bool = True) -> WorkflowService:
    async def execute_text_task(job: CronJobSpec, text: str) -> None:
        if echo_text:
            label = job.name or job.id or "workflow"
            console.print(f"[cyan]{escape('[' + job.dispatch.channel + ']')}[/cyan] [bold]{escape(label)}[/bold]: {escape(text)}")

    async def execute_delay(seconds: int) -> None:
        if workflow_config.is_delay_capped:
            seconds = min(seconds, workflow_config.max_delay_seconds)
        await sleep_delay(seconds)

    registry = register_builtin_handlers(
        NodeRegistry(),
        execute_text_task,
        execute_delay=execute_delay,
    )
    return WorkflowService(
        registry,
        now_iso=now_iso,
        new_run_id=lambda: new_run_id(workflow_config.run_id_prefix),
    )


def _node_types_line(service: WorkflowService) -> str:
    types = ", ".join(["start", *service.registry.types()])
    return f"[dim]Node types: {escape(types)}[/dim]"


def _plan_table(plan: Plan) -> Table:
    table = Table(title="Execution order", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Node", style="cyan")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Continue on error", justify="center")
    for position, node in enumerate(plan.order, start=1):
        table.add_row(
            str(position),
            escape(node.id),
            node.type,
            escape(node.title) if node.title else "[dim]-[/dim]",
            "[green]●[/green]" if node.continue_on_error else "[dim]○[/dim]",
        )
    return table


def _execution_table(execution: WorkflowExecution) -> Table:
    table = Table(title=f"Run {execution.run_id}", box=box.ROUNDED)
    table.add_column("Node", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Started")
    table.add_column("Finished")
    table.add_column("Error")
    for step in execution.nodes:
        style = STATUS_STYLES.get(step.status, "white")
        table.add_row(
            escape(step.node_id),
            step.node_type,
            f"[{style}]{step.status.value}[/{style}]",
            step.started_at,
            step.finished_at or "",
            escape(step.error or ""),
        )
    return table


@cli.command()
@click.argument('workflow_file', type=click.Path(dir_okay=False))
def validate(workflow_file: str):
    """
    Compile a workflow file and print its execution order.

    \b
    Example:
      cron-workflow validate workflow.json
    """
    service = _build_service()
    try:
        plan = service.build_plan(parse_workflow_spec(_read_payload(workflow_file)))
    except WorkflowCompilerError as exc:
        console.print(f"[red]✗ Invalid workflow:[/red] {escape(str(exc))}")
        console.print(_node_types_line(service))
        sys.exit(1)

    console.print(f"[green]✓ Workflow is valid[/green] [dim](start: {escape(plan.start_id)})[/dim]")
    console.print(_plan_table(plan))
    console.print(_node_types_line(service))


@cli.command()
@click.argument('workflow_file', type=click.Path(dir_okay=False))
@click.option('--job', 'job_json', default=None, help='Job fields as JSON (id, name, task_type, dispatch)')
@click.option('--format', '-f', 'fmt', type=click.Choice(['table', 'json']), default='table', help='Output format')
def run(workflow_file: str, job_json: Optional[str], fmt: str):
    """
    Run a workflow once with the builtin node handlers.

    Text events are printed to the console instead of being dispatched.

    \b
    Example:
      cron-workflow run workflow.json --job '{"name": "nightly"}' --format json
    """
    try:
        workflow = parse_workflow_spec(_read_payload(workflow_file))
        job = parse_job_spec(job_json or "{}")
    except WorkflowCompilerError as exc:
        console.print(f"[red]✗ {escape(str(exc))}[/red]")
        sys.exit(1)

    updates = {"workflow": workflow, "task_type": job.task_type or "workflow"}
    if not job.dispatch.channel:
        updates["dispatch"] = job.dispatch.model_copy(
            update={"channel": workflow_config.default_dispatch_channel}
        )
    job = job.model_copy(update=updates)

    service = _build_service(echo_text=fmt == 'table')
    try:
        result = asyncio.run(service.execute_job(job))
    except WorkflowCompilerError as exc:
        console.print(f"[red]✗ {escape(str(exc))}[/red]")
        sys.exit(1)

    if fmt == 'json':
        click.echo(json.dumps(result.execution.to_payload(), indent=2))
    else:
        console.print(_execution_table(result.execution))
        if result.error is not None:
            console.print(f"[red]First failure:[/red] {escape(str(result.error))}")

    if result.execution.had_failures:
        sys.exit(1)


@cli.command()
def config():
    """
    Show current configuration.

    Displays configuration values loaded from environment variables and .env file.
    """
    console.print(Panel.fit(
        "[bold cyan]Cron Workflow Configuration[/bold cyan]",
        border_style="cyan"
    ))

    table = Table(box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Env Variable", style="dim")
    table.add_column("Value")
    for attr in ("log_level", "default_dispatch_channel", "run_id_prefix", "max_delay_seconds"):
        value = getattr(workflow_config, attr)
        table.add_row(attr, attr.upper(), "[dim]not set[/dim]" if value is None else str(value))
    console.print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
