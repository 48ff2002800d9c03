"""CLI helpers for project and view resolution."""

from __future__ import annotations

import click

from estimatekit.domain.project import ProjectService
from estimatekit.domain.view import ViewService
from estimatekit.utils.resolver import resolve_project, resolve_view


def resolve_project_or_exit(ctx: click.Context, project_service: ProjectService, project: str) -> str:
    """Resolve a project title or ID, or exit with a CLI error."""
    try:
        return resolve_project(project_service, project)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_view_or_exit(
    ctx: click.Context, view_service: ViewService, project_id: str, view: str | None
) -> str:
    """Resolve a view name or ID within a project, or exit with a CLI error.

    Without a view reference the customer view (or the first view) is used.
    """
    try:
        if view is None:
            views = view_service.list_views(project_id)
            for v in views:
                if v.is_customer_view:
                    return v.id
            return views[0].id
        return resolve_view(view_service, project_id, view)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
