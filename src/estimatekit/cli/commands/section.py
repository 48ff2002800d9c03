"""Estimate section commands."""

import click
from estimatekit.cli.error_handling import handle_domain_error
from estimatekit.cli.resolution import resolve_project_or_exit, resolve_view_or_exit
from estimatekit.domain.estimate import EstimateService
from estimatekit.domain.project import ProjectService
from estimatekit.domain.view import ViewService


@click.group()
def section_group():
    """Manage estimate sections."""
    pass


@section_group.command("add")
@click.argument("project", metavar="PROJECT")
@click.argument("name", metavar="SECTION_NAME")
@click.pass_context
def add_section(ctx, project: str, name: str):
    """Append a section to a project's estimate.

    Examples:
        estimatekit section add "Apartment" "Demolition"
    """
    db = ctx.obj["db"]
    service = EstimateService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        section_id = service.add_section(project_id, name)
        click.echo(f"Added section '{name.strip()}' (ID: {section_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@section_group.command("rename")
@click.argument("section_id", metavar="SECTION_ID")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_section(ctx, section_id: str, new_name: str):
    """Rename a section."""
    db = ctx.obj["db"]
    service = EstimateService(db)

    try:
        service.rename_section(section_id, new_name)
        click.echo(f"Renamed section to '{new_name.strip()}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@section_group.command("delete")
@click.argument("section_id", metavar="SECTION_ID")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_section(ctx, section_id: str, yes: bool):
    """Delete a section together with its items.

    Payments and completions recorded against its items are kept and still
    count towards the project balance.
    """
    db = ctx.obj["db"]
    service = EstimateService(db)
    section = service.get_section(section_id)
    if section is None:
        click.echo(f"Error: Section {section_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete section '{section.name}' and its items?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_section(section_id)
        click.echo(f"Deleted section '{section.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@section_group.command("visibility")
@click.argument("section_id", metavar="SECTION_ID")
@click.argument("view", metavar="VIEW")
@click.argument("state", type=click.Choice(["show", "hide"]))
@click.pass_context
def section_visibility(ctx, section_id: str, view: str, state: str):
    """Show or hide a section in one view.

    Examples:
        estimatekit section visibility <section-id> Customer hide
    """
    db = ctx.obj["db"]
    service = EstimateService(db)
    section = service.get_section(section_id)
    if section is None:
        click.echo(f"Error: Section {section_id} not found", err=True)
        ctx.exit(1)
    view_id = resolve_view_or_exit(ctx, ViewService(db), section.project_id, view)

    try:
        service.set_section_visibility(section_id, view_id, state == "show")
        click.echo(f"Section '{section.name}' is now {'visible' if state == 'show' else 'hidden'}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register section commands with main CLI."""
    cli.add_command(section_group, name="section")
