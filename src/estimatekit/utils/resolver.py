"""Helpers for resolving project and view references to IDs."""

from estimatekit.domain.errors import NotFoundError
from estimatekit.domain.project import ProjectService
from estimatekit.domain.view import ViewService


def resolve_project(project_service: ProjectService, project: str) -> str:
    """Resolve a project ID or title to a project ID.

    An exact ID match wins; otherwise the title must match exactly one project.

    Raises:
        NotFoundError: If no project or more than one project matches
    """
    if project_service.get_project(project) is not None:
        return project

    matches = [p for p in project_service.list_projects() if p.title == project]
    if len(matches) == 1:
        return matches[0].id
    if matches:
        raise NotFoundError(f"Project title '{project}' is ambiguous; use the project ID")
    raise NotFoundError(f"Project '{project}' not found")


def resolve_view(view_service: ViewService, project_id: str, view: str) -> str:
    """Resolve a view ID or name within a project to a view ID.

    Raises:
        NotFoundError: If the view is not found in the project
    """
    views = view_service.list_views(project_id)
    for v in views:
        if v.id == view:
            return v.id
    for v in views:
        if v.name == view:
            return v.id
    raise NotFoundError(f"View '{view}' not found in project {project_id}")
