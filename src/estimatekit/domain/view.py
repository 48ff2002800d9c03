"""View domain service."""

from typing import Optional

import structlog

from estimatekit.database.base import Database
from estimatekit.domain.entities import View as ViewEntity
from estimatekit.domain.errors import (
    LastViewError,
    NotFoundError,
    ValidationError,
    empty_name,
    last_view,
    project_not_found,
    view_not_found,
)

logger = structlog.get_logger(__name__)

COPY_SUFFIX = " (copy)"


class ViewService:
    """Service for managing the pricing views of a project."""

    def __init__(self, db: Database):
        """Initialize view service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_project(self, project_id: str) -> None:
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))

    def _require_view(self, view_id: str) -> ViewEntity:
        view = self.db.get_view(view_id)
        if view is None:
            raise NotFoundError(view_not_found(view_id))
        return view

    @staticmethod
    def _clean_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError(empty_name("View"))
        return name

    def get_view(self, view_id: str) -> Optional[ViewEntity]:
        return self.db.get_view(view_id)

    def list_views(self, project_id: str) -> list[ViewEntity]:
        """List views of a project in sort order.

        Raises:
            NotFoundError: If project doesn't exist
        """
        self._require_project(project_id)
        return self.db.list_views(project_id)

    def create_view(self, project_id: str, name: str) -> str:
        """Create a view at the end of the project's view list.

        Every existing section and item becomes visible in the new view with
        price 0.

        Returns:
            View ID

        Raises:
            NotFoundError: If project doesn't exist
            ValidationError: If name is empty
        """
        self._require_project(project_id)
        name = self._clean_name(name)
        sort_order = self.db.get_max_view_sort_order(project_id) + 1
        view_id = self.db.create_view(project_id, name, sort_order)
        logger.info("view_created", project_id=project_id, view_id=view_id)
        return view_id

    def rename_view(self, view_id: str, name: str) -> None:
        self._require_view(view_id)
        self.db.update_view(view_id, name=self._clean_name(name))

    def set_view_secret(self, view_id: str, secret: Optional[str]) -> None:
        """Protect a published view with a secret; a blank secret clears it."""
        self._require_view(view_id)
        secret = (secret or "").strip() or None
        self.db.update_view(view_id, access_secret=secret, update_secret=True)

    def duplicate_view(self, view_id: str, name: Optional[str] = None) -> str:
        """Copy a view with all of its prices and visibility settings.

        Args:
            view_id: View to copy
            name: Name of the copy, defaults to the source name with " (copy)"

        Returns:
            ID of the new view
        """
        source = self._require_view(view_id)
        name = self._clean_name(name) if name is not None else f"{source.name}{COPY_SUFFIX}"
        sort_order = self.db.get_max_view_sort_order(source.project_id) + 1
        new_view_id = self.db.create_view(
            source.project_id, name, sort_order, copy_settings_from=source.id
        )
        logger.info("view_duplicated", source_view_id=view_id, view_id=new_view_id)
        return new_view_id

    def delete_view(self, view_id: str) -> None:
        """Delete a view.

        If the view held the customer flag, the flag moves to the first
        remaining view.

        Raises:
            NotFoundError: If view doesn't exist
            LastViewError: If it is the only view of its project
        """
        view = self._require_view(view_id)
        views = self.db.list_views(view.project_id)
        if len(views) <= 1:
            raise LastViewError(last_view(view.project_id))

        self.db.delete_view(view_id)
        logger.info("view_deleted", project_id=view.project_id, view_id=view_id)

    def set_customer_view(self, view_id: str) -> None:
        """Flag a view as the customer view, clearing the flag on the previous holder."""
        view = self._require_view(view_id)
        self.db.set_customer_view(view.project_id, view.id)
