"""Act of completed work commands."""

import base64
import mimetypes
from pathlib import Path

import click
from estimatekit.cli.error_handling import handle_domain_error
from estimatekit.cli.formatting import format_money, format_quantity
from estimatekit.cli.resolution import resolve_project_or_exit, resolve_view_or_exit
from estimatekit.domain.act import ActService
from estimatekit.domain.entities import ActFields, ActLineKind, ActSelection, SelectionMode
from estimatekit.domain.project import ProjectService
from estimatekit.domain.view import ViewService
from estimatekit.utils.date_parser import parse_date


@click.group()
def act_group():
    """Issue and inspect acts of completed work."""
    pass


def _print_lines(lines, grand_total):
    number = 0
    for line in lines:
        if line.kind is ActLineKind.SECTION_TOTAL:
            click.echo(f"\n{line.name:46s} {format_money(line.total):>30}")
            continue
        number += 1
        click.echo(
            f"{number:>4} | {line.name[:30]:30s} | {format_quantity(line.quantity):>8} {line.unit:5s} | "
            f"{format_money(line.price):>12} | {format_money(line.total):>14}"
        )
    click.echo("=" * 80)
    click.echo(f"{'Total:':>64} {format_money(grand_total):>14}")


def _selection_options(func):
    options = [
        click.option("--view", "view_ref", help="View whose prices are used (defaults to the customer view)"),
        click.option(
            "--mode",
            type=click.Choice([m.value for m in SelectionMode]),
            default=SelectionMode.SECTIONS.value,
            show_default=True,
            help="Select whole sections or single items",
        ),
        click.option("--section", "section_ids", multiple=True, help="Section ID (repeatable)"),
        click.option("--item", "item_ids", multiple=True, help="Item ID (repeatable)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@act_group.command("preview")
@click.argument("project", metavar="PROJECT")
@_selection_options
@click.pass_context
def preview_act(ctx, project: str, view_ref: str | None, mode: str, section_ids, item_ids):
    """Show the lines an act would get, without storing it."""
    db = ctx.obj["db"]
    service = ActService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    view_id = resolve_view_or_exit(ctx, ViewService(db), project_id, view_ref)
    selection = ActSelection(mode=SelectionMode(mode), section_ids=section_ids, item_ids=item_ids)

    try:
        preview = service.preview_lines(project_id, view_id, selection)
    except ValueError as e:
        handle_domain_error(ctx, e)

    _print_lines(preview.lines, preview.grand_total)


@act_group.command("create")
@click.argument("project", metavar="PROJECT")
@_selection_options
@click.option("--number", required=True, help="Act number")
@click.option("--date", "act_date", default="today", help="Act date (YYYY-MM-DD, DD.MM.YYYY or 'today')")
@click.option("--executor", default="", help="Executor name")
@click.option("--executor-details", default="", help="Executor requisites")
@click.option("--customer", default="", help="Customer name")
@click.option("--director", default="", help="Director name")
@click.option("--service", "service_name", default="", help="Name of the service provided")
@click.pass_context
def create_act(
    ctx,
    project: str,
    view_ref: str | None,
    mode: str,
    section_ids,
    item_ids,
    number: str,
    act_date: str,
    executor: str,
    executor_details: str,
    customer: str,
    director: str,
    service_name: str,
) -> None:
    """Record an act from the current estimate.

    The act keeps a copy of the lines; later estimate edits do not change it.

    Examples:
        estimatekit act create "Apartment" --number 1 --section <section-id>
        estimatekit act create "Apartment" --mode items --item <id> --item <id> --number 2
    """
    db = ctx.obj["db"]
    service = ActService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    view_id = resolve_view_or_exit(ctx, ViewService(db), project_id, view_ref)

    try:
        parsed_date = parse_date(act_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    selection = ActSelection(mode=SelectionMode(mode), section_ids=section_ids, item_ids=item_ids)
    fields = ActFields(
        number=number,
        date=parsed_date,
        executor_name=executor,
        executor_details=executor_details,
        customer_name=customer,
        director_name=director,
        service_name=service_name,
    )

    try:
        act = service.create_act(project_id, view_id, selection, fields)
        click.echo(f"Created act {act.number} for {format_money(act.grand_total)} (ID: {act.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@act_group.command("list")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def list_acts(ctx, project: str):
    """List acts of a project, newest first."""
    db = ctx.obj["db"]
    service = ActService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        acts = service.list_acts(project_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not acts:
        click.echo("No acts found.")
        return

    click.echo("\nActs:")
    click.echo("-" * 80)
    for a in acts:
        click.echo(f"No. {a.number:10s} | {a.date.isoformat()} | {format_money(a.grand_total):>14} | ID: {a.id}")


@act_group.command("show")
@click.argument("act_id", metavar="ACT_ID")
@click.pass_context
def show_act(ctx, act_id: str):
    """Show a stored act with its lines."""
    db = ctx.obj["db"]
    act = ActService(db).get_act(act_id)
    if act is None:
        click.echo(f"Error: Act {act_id} not found", err=True)
        ctx.exit(1)

    click.echo(f"\nAct No. {act.number} of {act.date.isoformat()}")
    if act.executor_name:
        click.echo(f"Executor: {act.executor_name}")
    if act.customer_name:
        click.echo(f"Customer: {act.customer_name}")
    click.echo("=" * 80)
    _print_lines(act.items, act.grand_total)


@act_group.command("delete")
@click.argument("act_id", metavar="ACT_ID")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_act(ctx, act_id: str, yes: bool):
    """Delete an act; its items are no longer marked as used."""
    db = ctx.obj["db"]
    service = ActService(db)
    act = service.get_act(act_id)
    if act is None:
        click.echo(f"Error: Act {act_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete act {act.number}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_act(act_id)
        click.echo(f"Deleted act {act.number}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@act_group.command("used-items")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def used_items(ctx, project: str):
    """List estimate items that already appear in acts."""
    db = ctx.obj["db"]
    service = ActService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        used = service.get_used_items(project_id)
        tree = ProjectService(db).get_tree(project_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not used:
        click.echo("No items have been included in acts.")
        return

    for item_id, usages in used.items():
        live = tree.find_item(item_id)
        name = live.name if live is not None else "(deleted item)"
        acts = ", ".join(f"No. {u.act_number} ({u.act_date.isoformat()})" for u in usages)
        click.echo(f"{name[:30]:30s} | {acts}  [{item_id}]")


@act_group.group("image")
def image_group():
    """Manage logo, stamp and signature images printed on acts."""
    pass


@image_group.command("set")
@click.argument("project", metavar="PROJECT")
@click.argument("image_type", type=click.Choice(["logo", "stamp", "signature"]))
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def set_image(ctx, project: str, image_type: str, path: str):
    """Store an image file for a project's acts."""
    db = ctx.obj["db"]
    service = ActService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    encoded = base64.b64encode(Path(path).read_bytes()).decode("ascii")

    try:
        service.set_act_image(project_id, image_type, f"data:{media_type};base64,{encoded}")
        click.echo(f"Stored {image_type} image")
    except ValueError as e:
        handle_domain_error(ctx, e)


@image_group.command("list")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def list_images(ctx, project: str):
    """List stored act images."""
    db = ctx.obj["db"]
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    images = ActService(db).get_act_images(project_id)
    if not images:
        click.echo("No act images stored.")
        return
    for image_type, data in sorted(images.items()):
        click.echo(f"{image_type:10s} | {data[:40]}...")


@image_group.command("delete")
@click.argument("project", metavar="PROJECT")
@click.argument("image_type", type=click.Choice(["logo", "stamp", "signature"]))
@click.pass_context
def delete_image(ctx, project: str, image_type: str):
    """Remove a stored act image."""
    db = ctx.obj["db"]
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        ActService(db).delete_act_image(project_id, image_type)
        click.echo(f"Removed {image_type} image")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register act commands with main CLI."""
    cli.add_command(act_group, name="act")
