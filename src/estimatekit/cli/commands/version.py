"""Version snapshot commands."""

import click
from estimatekit.cli.error_handling import handle_domain_error
from estimatekit.cli.formatting import format_money, format_quantity
from estimatekit.cli.resolution import resolve_project_or_exit
from estimatekit.domain.project import ProjectService
from estimatekit.domain.version import VersionService


@click.group()
def version_group():
    """Freeze and restore estimate versions."""
    pass


@version_group.command("create")
@click.argument("project", metavar="PROJECT")
@click.option("--name", help="Optional version label")
@click.pass_context
def create_version(ctx, project: str, name: str | None):
    """Freeze the current estimate as the next numbered version.

    Examples:
        estimatekit version create "Apartment" --name "Sent to customer"
    """
    db = ctx.obj["db"]
    service = VersionService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        version_id = service.create_version(project_id, name=name)
        snapshot = service.get_version(version_id)
        click.echo(f"Created version {snapshot.version.version_number} (ID: {version_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@version_group.command("list")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def list_versions(ctx, project: str):
    """List versions of a project, newest first."""
    db = ctx.obj["db"]
    service = VersionService(db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        versions = service.list_versions(project_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not versions:
        click.echo("No versions found.")
        return

    click.echo("\nVersions:")
    click.echo("-" * 80)
    for v in versions:
        click.echo(
            f"v{v.version_number:<4d} | {(v.name or ''):30s} | "
            f"{v.created_at:%Y-%m-%d %H:%M} | ID: {v.id}"
        )


@version_group.command("show")
@click.argument("version_id", metavar="VERSION_ID")
@click.pass_context
def show_version(ctx, version_id: str):
    """Show the frozen content of a version, priced through each of its views."""
    db = ctx.obj["db"]
    service = VersionService(db)

    try:
        snapshot = service.get_version(version_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    header = snapshot.version
    label = f" - {header.name}" if header.name else ""
    click.echo(f"\nVersion {header.version_number}{label}")
    click.echo("=" * 80)
    for section in snapshot.sections:
        click.echo(f"\n{section.name}")
        click.echo("-" * 80)
        for it in section.items:
            prices = ", ".join(
                f"{v.name}: {format_money(it.view_settings[v.id].price)}"
                for v in snapshot.views
                if v.id in it.view_settings
            )
            click.echo(f"  {it.name[:30]:30s} | {format_quantity(it.quantity):>8} {it.unit:5s} | {prices}")


@version_group.command("restore")
@click.argument("version_id", metavar="VERSION_ID")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def restore_version(ctx, version_id: str, yes: bool):
    """Replace the live estimate with the content of a version.

    Views, sections and items are recreated with new IDs. Acts, payments
    and completions are not touched.
    """
    db = ctx.obj["db"]
    service = VersionService(db)

    try:
        snapshot = service.get_version(version_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(
        f"Restoring version {snapshot.version.version_number} replaces the current estimate. Continue?"
    ):
        click.echo("Restore cancelled.")
        return

    try:
        service.restore_version(version_id)
        click.echo(f"Restored version {snapshot.version.version_number}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register version commands with main CLI."""
    cli.add_command(version_group, name="version")
