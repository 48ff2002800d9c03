"""Pricing view commands."""

import click
from estimatekit.cli.error_handling import handle_domain_error
from estimatekit.cli.resolution import resolve_project_or_exit, resolve_view_or_exit
from estimatekit.domain.project import ProjectService
from estimatekit.domain.view import ViewService


@click.group()
def view_group():
    """Manage pricing views of a project."""
    pass


@view_group.command("list")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def list_views(ctx, project: str):
    """List views of a project with their access tokens."""
    db = ctx.obj["db"]
    service = ViewService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        views = service.list_views(project_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo("\nViews:")
    click.echo("-" * 80)
    for v in views:
        flags = []
        if v.is_customer_view:
            flags.append("customer")
        if v.access_secret:
            flags.append("protected")
        suffix = f" ({', '.join(flags)})" if flags else ""
        click.echo(f"ID: {v.id} | {v.name + suffix:30s} | Token: {v.access_token}")


@view_group.command("create")
@click.argument("project", metavar="PROJECT")
@click.argument("name", metavar="VIEW_NAME")
@click.pass_context
def create_view(ctx, project: str, name: str):
    """Create a view; every existing line starts visible with price 0.

    Examples:
        estimatekit view create "Apartment" "Subcontractor"
    """
    db = ctx.obj["db"]
    service = ViewService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        view_id = service.create_view(project_id, name)
        click.echo(f"Created view '{name.strip()}' (ID: {view_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@view_group.command("rename")
@click.argument("project", metavar="PROJECT")
@click.argument("view", metavar="VIEW")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_view(ctx, project: str, view: str, new_name: str):
    """Rename a view."""
    db = ctx.obj["db"]
    service = ViewService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    view_id = resolve_view_or_exit(ctx, service, project_id, view)

    try:
        service.rename_view(view_id, new_name)
        click.echo(f"Renamed view to '{new_name.strip()}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@view_group.command("set-secret")
@click.argument("project", metavar="PROJECT")
@click.argument("view", metavar="VIEW")
@click.argument("secret", metavar="SECRET", required=False)
@click.pass_context
def set_view_secret(ctx, project: str, view: str, secret: str | None):
    """Protect a published view with a secret; omit SECRET to clear it."""
    db = ctx.obj["db"]
    service = ViewService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    view_id = resolve_view_or_exit(ctx, service, project_id, view)

    try:
        service.set_view_secret(view_id, secret)
        if (secret or "").strip():
            click.echo("Access secret set")
        else:
            click.echo("Access secret cleared")
    except ValueError as e:
        handle_domain_error(ctx, e)


@view_group.command("duplicate")
@click.argument("project", metavar="PROJECT")
@click.argument("view", metavar="VIEW")
@click.option("--name", help="Name of the copy (defaults to '<name> (copy)')")
@click.pass_context
def duplicate_view(ctx, project: str, view: str, name: str | None):
    """Copy a view with all of its prices and visibility settings."""
    db = ctx.obj["db"]
    service = ViewService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    view_id = resolve_view_or_exit(ctx, service, project_id, view)

    try:
        new_view_id = service.duplicate_view(view_id, name=name)
        copy = service.get_view(new_view_id)
        click.echo(f"Created view '{copy.name}' (ID: {new_view_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@view_group.command("delete")
@click.argument("project", metavar="PROJECT")
@click.argument("view", metavar="VIEW")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_view(ctx, project: str, view: str, yes: bool):
    """Delete a view with its prices and visibility settings.

    The last view of a project cannot be deleted.
    """
    db = ctx.obj["db"]
    service = ViewService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    view_id = resolve_view_or_exit(ctx, service, project_id, view)
    view_obj = service.get_view(view_id)

    if not yes and not click.confirm(f"Are you sure you want to delete view '{view_obj.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_view(view_id)
        click.echo(f"Deleted view '{view_obj.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@view_group.command("set-customer")
@click.argument("project", metavar="PROJECT")
@click.argument("view", metavar="VIEW")
@click.pass_context
def set_customer_view(ctx, project: str, view: str):
    """Make a view the customer view, used to price completed work."""
    db = ctx.obj["db"]
    service = ViewService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    view_id = resolve_view_or_exit(ctx, service, project_id, view)

    try:
        service.set_customer_view(view_id)
        click.echo(f"'{service.get_view(view_id).name}' is now the customer view")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register view commands with main CLI."""
    cli.add_command(view_group, name="view")
