"""Completed work commands."""

import click
from estimatekit.cli.error_handling import handle_domain_error
from estimatekit.cli.formatting import format_quantity
from estimatekit.cli.pair_options import parse_amount_or_exit
from estimatekit.cli.resolution import resolve_project_or_exit
from estimatekit.domain.payment import PaymentService
from estimatekit.domain.project import ProjectService
from estimatekit.utils.date_parser import parse_date


@click.group()
def completion_group():
    """Record completed work on estimate items."""
    pass


@completion_group.command("record")
@click.argument("project", metavar="PROJECT")
@click.argument("item_id", metavar="ITEM_ID")
@click.argument("quantity", metavar="QUANTITY")
@click.option("--date", "completion_date", default="today", help="Completion date (default: today)")
@click.option("--notes", default="", help="Notes")
@click.pass_context
def record_completion(ctx, project: str, item_id: str, quantity: str, completion_date: str, notes: str):
    """Record a completed quantity; it is priced with the customer view.

    Examples:
        estimatekit completion record "Apartment" <item-id> 12.5
    """
    db = ctx.obj["db"]
    service = PaymentService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    qty = parse_amount_or_exit(ctx, quantity, "quantity")

    try:
        done_on = parse_date(completion_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        completion_id = service.record_completion(project_id, item_id, qty, done_on, notes=notes)
        click.echo(f"Recorded completion of {format_quantity(qty)} (ID: {completion_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@completion_group.command("list")
@click.argument("project", metavar="PROJECT")
@click.option("--item", "item_id", help="Only completions of this item")
@click.pass_context
def list_completions(ctx, project: str, item_id: str | None):
    """List completions of a project."""
    db = ctx.obj["db"]
    service = PaymentService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        completions = service.list_completions(project_id, item_id=item_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not completions:
        click.echo("No completions found.")
        return

    for c in completions:
        click.echo(
            f"{c.completion_date.isoformat()} | {format_quantity(c.quantity):>10} | item {c.item_id} | ID: {c.id}"
        )


@completion_group.command("delete")
@click.argument("completion_id", metavar="COMPLETION_ID")
@click.pass_context
def delete_completion(ctx, completion_id: str):
    """Delete a completion record."""
    db = ctx.obj["db"]
    service = PaymentService(db)

    try:
        service.delete_completion(completion_id)
        click.echo(f"Deleted completion {completion_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register completion commands with main CLI."""
    cli.add_command(completion_group, name="completion")
