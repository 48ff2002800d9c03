"""Estimate item commands."""

import click
from estimatekit.cli.error_handling import handle_domain_error
from estimatekit.cli.pair_options import parse_amount_or_exit, parse_amount_pairs
from estimatekit.cli.resolution import resolve_view_or_exit
from estimatekit.domain.estimate import EstimateService
from estimatekit.domain.payment import PaymentService
from estimatekit.domain.view import ViewService


@click.group()
def item_group():
    """Manage estimate items."""
    pass


def _view_settings(ctx, db, project_id, prices, show, hide):
    """Build view_id -> (price, visible) from --price/--show/--hide options."""
    view_service = ViewService(db)
    settings = {}
    for view_ref, price in parse_amount_pairs(ctx, prices, "VIEW"):
        view_id = resolve_view_or_exit(ctx, view_service, project_id, view_ref)
        settings[view_id] = (price, settings.get(view_id, (None, None))[1])
    for view_ref, visible in [(v, True) for v in show] + [(v, False) for v in hide]:
        view_id = resolve_view_or_exit(ctx, view_service, project_id, view_ref)
        settings[view_id] = (settings.get(view_id, (None, None))[0], visible)
    return settings


@item_group.command("add")
@click.argument("section_id", metavar="SECTION_ID")
@click.argument("name", metavar="ITEM_NAME")
@click.option("--unit", default="", help="Unit of measure (e.g. m2, pcs)")
@click.option("--quantity", default="0", help="Quantity shared by all views")
@click.option("--number", default="", help="Line number as shown in the source estimate")
@click.option("--price", "prices", multiple=True, help="Price in a view as VIEW=PRICE (repeatable)")
@click.pass_context
def add_item(ctx, section_id: str, name: str, unit: str, quantity: str, number: str, prices: tuple[str, ...]):
    """Append an item to a section.

    Examples:
        estimatekit item add <section-id> "Plastering" --unit m2 --quantity 42 --price Customer=650 --price Team=400
    """
    db = ctx.obj["db"]
    service = EstimateService(db)
    qty = parse_amount_or_exit(ctx, quantity, "quantity")

    section = service.get_section(section_id)
    if section is None:
        click.echo(f"Error: Section {section_id} not found", err=True)
        ctx.exit(1)
    settings = _view_settings(ctx, db, section.project_id, prices, (), ())

    try:
        item_id = service.add_item(section_id, name, unit=unit, quantity=qty, number=number)
        if settings:
            service.update_item(item_id, view_settings=settings)
        click.echo(f"Added item '{name.strip()}' (ID: {item_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@item_group.command("update")
@click.argument("item_id", metavar="ITEM_ID")
@click.option("--name", help="New item name")
@click.option("--unit", help="New unit of measure")
@click.option("--quantity", help="New quantity")
@click.option("--price", "prices", multiple=True, help="Price in a view as VIEW=PRICE (repeatable)")
@click.option("--show", multiple=True, help="View to show the item in (repeatable)")
@click.option("--hide", multiple=True, help="View to hide the item in (repeatable)")
@click.pass_context
def update_item(
    ctx,
    item_id: str,
    name: str | None,
    unit: str | None,
    quantity: str | None,
    prices: tuple[str, ...],
    show: tuple[str, ...],
    hide: tuple[str, ...],
) -> None:
    """Update an item; all given changes are saved together.

    Items that have been paid for or completed cannot be changed.
    """
    db = ctx.obj["db"]
    service = EstimateService(db)

    item = service.get_item(item_id)
    if item is None:
        click.echo(f"Error: Item {item_id} not found", err=True)
        ctx.exit(1)

    qty = parse_amount_or_exit(ctx, quantity, "quantity") if quantity is not None else None
    settings = _view_settings(ctx, db, item.project_id, prices, show, hide)

    try:
        service.update_item(item_id, name=name, unit=unit, quantity=qty, view_settings=settings)
        click.echo(f"Updated item {item_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@item_group.command("price")
@click.argument("item_id", metavar="ITEM_ID")
@click.argument("view", metavar="VIEW")
@click.argument("price", metavar="PRICE")
@click.pass_context
def set_item_price(ctx, item_id: str, view: str, price: str):
    """Set the price of an item in one view."""
    db = ctx.obj["db"]
    service = EstimateService(db)
    item = service.get_item(item_id)
    if item is None:
        click.echo(f"Error: Item {item_id} not found", err=True)
        ctx.exit(1)
    view_id = resolve_view_or_exit(ctx, ViewService(db), item.project_id, view)
    amount = parse_amount_or_exit(ctx, price, "price")

    try:
        service.set_view_item_setting(item_id, view_id, price=amount)
        click.echo(f"Set price of '{item.name}' to {amount}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@item_group.command("visibility")
@click.argument("item_id", metavar="ITEM_ID")
@click.argument("view", metavar="VIEW")
@click.argument("state", type=click.Choice(["show", "hide"]))
@click.pass_context
def item_visibility(ctx, item_id: str, view: str, state: str):
    """Show or hide an item in one view."""
    db = ctx.obj["db"]
    service = EstimateService(db)
    item = service.get_item(item_id)
    if item is None:
        click.echo(f"Error: Item {item_id} not found", err=True)
        ctx.exit(1)
    view_id = resolve_view_or_exit(ctx, ViewService(db), item.project_id, view)

    try:
        service.set_view_item_setting(item_id, view_id, visible=state == "show")
        click.echo(f"Item '{item.name}' is now {'visible' if state == 'show' else 'hidden'}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@item_group.command("status")
@click.argument("item_id", metavar="ITEM_ID")
@click.pass_context
def item_status(ctx, item_id: str):
    """Show paid and completed amounts of an item."""
    db = ctx.obj["db"]
    item = EstimateService(db).get_item(item_id)
    if item is None:
        click.echo(f"Error: Item {item_id} not found", err=True)
        ctx.exit(1)

    status = PaymentService(db).get_item_status(item.project_id, item_id)
    click.echo(f"Item:      {item.name}")
    click.echo(f"Paid:      {status.paid_amount:,.2f}")
    click.echo(f"Completed: {status.completed_amount:,.2f}")
    click.echo(f"Locked:    {'yes' if status.is_locked else 'no'}")


@item_group.command("delete")
@click.argument("item_id", metavar="ITEM_ID")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_item(ctx, item_id: str, yes: bool):
    """Delete an item. Paid or completed items cannot be deleted."""
    db = ctx.obj["db"]
    service = EstimateService(db)
    item = service.get_item(item_id)
    if item is None:
        click.echo(f"Error: Item {item_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete item '{item.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_item(item_id)
        click.echo(f"Deleted item '{item.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register item commands with main CLI."""
    cli.add_command(item_group, name="item")
