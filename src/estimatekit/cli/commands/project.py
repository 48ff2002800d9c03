"""Project management commands."""

import click
from estimatekit.cli.error_handling import handle_domain_error
from estimatekit.cli.formatting import format_money, format_quantity
from estimatekit.cli.resolution import resolve_project_or_exit, resolve_view_or_exit
from estimatekit.domain.payment import PaymentService
from estimatekit.domain.pricing import is_visible, resolve_price, resolve_total, section_subtotal, view_total
from estimatekit.domain.project import ProjectService
from estimatekit.domain.view import ViewService


@click.group()
def project_group():
    """Manage projects."""
    pass


@project_group.command("create")
@click.argument("title", metavar="TITLE")
@click.pass_context
def create_project(ctx, title: str):
    """Create a new project with "Customer" and "Team" views.

    Examples:
        estimatekit project create "Apartment, Lenina 5"
    """
    db = ctx.obj["db"]
    service = ProjectService(db)

    try:
        project_id = service.create_project(title)
        click.echo(f"Created project '{title.strip()}' (ID: {project_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@project_group.command("list")
@click.pass_context
def list_projects(ctx):
    """List all projects."""
    db = ctx.obj["db"]
    service = ProjectService(db)

    projects = service.list_projects()
    if not projects:
        click.echo("No projects found.")
        return

    click.echo("\nProjects:")
    click.echo("-" * 80)
    for p in projects:
        click.echo(f"ID: {p.id} | {p.title:30s} | Created: {p.created_at:%Y-%m-%d}")


@project_group.command("show")
@click.argument("project", metavar="PROJECT")
@click.option("--view", "view_ref", help="View name or ID (defaults to the customer view)")
@click.option("--all", "show_hidden", is_flag=True, help="Include sections and items hidden in the view")
@click.pass_context
def show_project(ctx, project: str, view_ref: str | None, show_hidden: bool):
    """Show the estimate tree priced through one view.

    PROJECT can be a project title or ID. Items that are paid or completed
    are marked with "L" (locked).

    Examples:
        estimatekit project show "Apartment"
        estimatekit project show "Apartment" --view Team --all
    """
    db = ctx.obj["db"]
    service = ProjectService(db)
    view_service = ViewService(db)
    ledger = PaymentService(db)

    project_id = resolve_project_or_exit(ctx, service, project)
    view_id = resolve_view_or_exit(ctx, view_service, project_id, view_ref)

    try:
        tree = service.get_tree(project_id)
        statuses = ledger.get_item_statuses(project_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    view = next(v for v in tree.views if v.id == view_id)
    click.echo(f"\n{tree.project.title} [{view.name}]")
    click.echo("=" * 80)
    for node in tree.sections:
        section_visible = is_visible(node, view_id)
        if not section_visible and not show_hidden:
            continue
        hidden = "" if section_visible else " (hidden)"
        click.echo(f"\n{node.section.name}{hidden}  [{node.section.id}]")
        click.echo("-" * 80)
        for position, it in enumerate(node.items, start=1):
            item_visible = is_visible(it, view_id)
            if not item_visible and not show_hidden:
                continue
            status = statuses.get(it.id)
            lock = "L" if status is not None and status.is_locked else " "
            marker = "" if item_visible else " (hidden)"
            click.echo(
                f"{lock} {it.number or position:>4} | {it.name[:30]:30s} | "
                f"{format_quantity(it.quantity):>8} {it.unit:5s} | "
                f"{format_money(resolve_price(it, view_id)):>12} | "
                f"{format_money(resolve_total(it, view_id)):>14}{marker}  [{it.id}]"
            )
        click.echo(f"{'Section total:':>66} {format_money(section_subtotal(node, view_id)):>14}")

    click.echo("=" * 80)
    click.echo(f"{'Total:':>66} {format_money(view_total(tree, view_id)):>14}")


@project_group.command("totals")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def project_totals(ctx, project: str):
    """Show the estimate total of every view of a project."""
    db = ctx.obj["db"]
    service = ProjectService(db)
    project_id = resolve_project_or_exit(ctx, service, project)

    try:
        tree = service.get_tree(project_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    for v in tree.views:
        flag = " (customer)" if v.is_customer_view else ""
        click.echo(f"{v.name + flag:30s} {format_money(view_total(tree, v.id)):>16}")


@project_group.command("rename")
@click.argument("project", metavar="PROJECT")
@click.argument("new_title", metavar="NEW_TITLE")
@click.pass_context
def rename_project(ctx, project: str, new_title: str):
    """Rename a project.

    PROJECT can be a project title or ID.
    """
    db = ctx.obj["db"]
    service = ProjectService(db)
    project_id = resolve_project_or_exit(ctx, service, project)

    try:
        service.rename_project(project_id, new_title)
        click.echo(f"Renamed project to '{new_title.strip()}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@project_group.command("delete")
@click.argument("project", metavar="PROJECT")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_project(ctx, project: str, yes: bool):
    """Delete a project with its estimate, versions, acts and payments.

    PROJECT can be a project title or ID.
    """
    db = ctx.obj["db"]
    service = ProjectService(db)
    project_id = resolve_project_or_exit(ctx, service, project)
    project_obj = service.get_project(project_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete project '{project_obj.title}' and all of its data?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_project(project_id)
        click.echo(f"Deleted project '{project_obj.title}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@project_group.command("public")
@click.argument("token", metavar="ACCESS_TOKEN")
@click.option("--secret", help="Access secret of a protected view")
@click.pass_context
def public_view(ctx, token: str, secret: str | None):
    """Show what a customer sees under a published view link."""
    db = ctx.obj["db"]
    service = ProjectService(db)

    try:
        public = service.get_public_view(token, secret=secret)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{public.project_title} [{public.view_name}]")
    click.echo("=" * 80)
    for section in public.sections:
        click.echo(f"\n{section.name}")
        click.echo("-" * 80)
        for line in section.lines:
            click.echo(
                f"{line.number:>4} | {line.name[:30]:30s} | "
                f"{format_quantity(line.quantity):>8} {line.unit:5s} | "
                f"{format_money(line.price):>12} | {format_money(line.total):>14}"
            )
        click.echo(f"{'Section total:':>64} {format_money(section.subtotal):>14}")
    click.echo("=" * 80)
    click.echo(f"{'Total:':>64} {format_money(public.total):>14}")


def register_commands(cli):
    """Register project commands with main CLI."""
    cli.add_command(project_group, name="project")
