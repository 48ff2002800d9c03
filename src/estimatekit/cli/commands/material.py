"""Materials list commands."""

import click
from estimatekit.cli.error_handling import handle_domain_error
from estimatekit.cli.formatting import format_money, format_quantity
from estimatekit.cli.pair_options import parse_amount_or_exit
from estimatekit.cli.resolution import resolve_project_or_exit
from estimatekit.domain.material import MaterialService
from estimatekit.domain.project import ProjectService


@click.group()
def material_group():
    """Manage the materials list of a project."""
    pass


@material_group.command("list")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def list_materials(ctx, project: str):
    """List materials with their totals."""
    db = ctx.obj["db"]
    service = MaterialService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        materials = service.list_materials(project_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not materials:
        click.echo("No materials found.")
        return

    for m in materials:
        click.echo(
            f"{m.name[:30]:30s} | {format_quantity(m.quantity):>8} {m.unit:5s} | "
            f"{format_money(m.price):>12} | {format_money(m.total):>14} | ID: {m.id}"
        )


@material_group.command("update")
@click.argument("material_id", metavar="MATERIAL_ID")
@click.option("--name", help="New name")
@click.option("--price", help="New price")
@click.option("--quantity", help="New quantity")
@click.option("--unit", help="New unit")
@click.pass_context
def update_material(ctx, material_id: str, name: str | None, price: str | None, quantity: str | None, unit: str | None):
    """Update a material; its total follows price and quantity."""
    db = ctx.obj["db"]
    service = MaterialService(db)

    fields = {}
    if name is not None:
        fields["name"] = name
    if unit is not None:
        fields["unit"] = unit
    if price is not None:
        fields["price"] = parse_amount_or_exit(ctx, price, "price")
    if quantity is not None:
        fields["quantity"] = parse_amount_or_exit(ctx, quantity, "quantity")

    try:
        service.update_material(material_id, **fields)
        click.echo(f"Updated material {material_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@material_group.command("delete")
@click.argument("material_id", metavar="MATERIAL_ID")
@click.pass_context
def delete_material(ctx, material_id: str):
    """Delete a material."""
    db = ctx.obj["db"]
    service = MaterialService(db)

    try:
        service.delete_material(material_id)
        click.echo(f"Deleted material {material_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register material commands with main CLI."""
    cli.add_command(material_group, name="material")
