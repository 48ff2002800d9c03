"""Project domain service."""

from decimal import Decimal
from typing import Optional

import structlog

from estimatekit.database.base import Database
from estimatekit.domain.entities import (
    EstimateTree,
    Project as ProjectEntity,
    PublicLine,
    PublicSection,
    PublicView,
    View as ViewEntity,
)
from estimatekit.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    empty_name,
    project_not_found,
    view_not_found,
    view_not_in_project,
    view_token_not_found,
)
from estimatekit.domain.pricing import ZERO, is_visible, resolve_price, resolve_total, view_total

logger = structlog.get_logger(__name__)

DEFAULT_VIEW_NAMES = ("Customer", "Team")


class ProjectService:
    """Service for managing projects and reading their estimate tree."""

    def __init__(self, db: Database):
        """Initialize project service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_project(self, title: str) -> str:
        """Create a new project with the default "Customer" and "Team" views.

        Args:
            title: Project title

        Returns:
            Project ID

        Raises:
            ValidationError: If title is empty
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError(empty_name("Project"))

        project_id = self.db.create_project(title=title, view_names=DEFAULT_VIEW_NAMES)
        logger.info("project_created", project_id=project_id, title=title)
        return project_id

    def get_project(self, project_id: str) -> Optional[ProjectEntity]:
        """Get project by ID.

        Returns:
            Project entity or None if not found
        """
        return self.db.get_project(project_id)

    def require_project(self, project_id: str) -> ProjectEntity:
        """Get project by ID.

        Raises:
            NotFoundError: If project doesn't exist
        """
        project = self.db.get_project(project_id)
        if project is None:
            raise NotFoundError(project_not_found(project_id))
        return project

    def list_projects(self) -> list[ProjectEntity]:
        return self.db.list_projects()

    def rename_project(self, project_id: str, title: str) -> None:
        """Rename a project.

        Raises:
            NotFoundError: If project doesn't exist
            ValidationError: If title is empty
        """
        self.require_project(project_id)
        title = (title or "").strip()
        if not title:
            raise ValidationError(empty_name("Project"))
        self.db.update_project(project_id, title=title)

    def delete_project(self, project_id: str) -> None:
        """Delete a project with its views, tree, versions, acts and ledger."""
        self.require_project(project_id)
        self.db.delete_project(project_id)
        logger.info("project_deleted", project_id=project_id)

    def get_tree(self, project_id: str) -> EstimateTree:
        """Get the live estimate tree.

        Raises:
            NotFoundError: If project doesn't exist
        """
        tree = self.db.get_tree(project_id)
        if tree is None:
            raise NotFoundError(project_not_found(project_id))
        return tree

    def require_view(self, project_id: str, view_id: str) -> ViewEntity:
        """Get a view and check it belongs to the project.

        Raises:
            NotFoundError: If view doesn't exist
            ValidationError: If view belongs to another project
        """
        view = self.db.get_view(view_id)
        if view is None:
            raise NotFoundError(view_not_found(view_id))
        if view.project_id != project_id:
            raise ValidationError(view_not_in_project(view_id, project_id))
        return view

    def get_view_total(self, project_id: str, view_id: str) -> Decimal:
        """Total of the estimate as seen through a view."""
        tree = self.get_tree(project_id)
        self.require_view(project_id, view_id)
        return view_total(tree, view_id)

    def get_public_view(self, access_token: str, secret: Optional[str] = None) -> PublicView:
        """Build the customer-facing projection of a published view.

        Args:
            access_token: Public token of the view
            secret: Access secret, required when the view has one

        Raises:
            NotFoundError: If no view has this token
            ConflictError: If the view is protected and the secret does not match
        """
        view = self.db.get_view_by_token(access_token)
        if view is None:
            raise NotFoundError(view_token_not_found(access_token))
        if view.access_secret and view.access_secret != (secret or "").strip():
            logger.warning("public_view_secret_mismatch", view_id=view.id)
            raise ConflictError("Access secret does not match")

        tree = self.get_tree(view.project_id)
        sections = []
        for node in tree.sections:
            if not is_visible(node, view.id):
                continue
            lines = []
            for item in node.items:
                if not is_visible(item, view.id):
                    continue
                lines.append(
                    PublicLine(
                        number=str(len(lines) + 1),
                        name=item.name,
                        unit=item.unit,
                        quantity=item.quantity,
                        price=resolve_price(item, view.id),
                        total=resolve_total(item, view.id),
                    )
                )
            if not lines:
                continue
            subtotal = sum((line.total for line in lines), ZERO)
            sections.append(PublicSection(name=node.section.name, lines=tuple(lines), subtotal=subtotal))

        return PublicView(
            project_title=tree.project.title,
            view_name=view.name,
            sections=tuple(sections),
            total=sum((s.subtotal for s in sections), ZERO),
        )
