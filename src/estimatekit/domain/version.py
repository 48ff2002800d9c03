"""Version snapshot domain service."""

from typing import Optional

import structlog

from estimatekit.database.base import Database
from estimatekit.domain.entities import Version as VersionEntity, VersionSnapshot
from estimatekit.domain.errors import NotFoundError, project_not_found, version_not_found

logger = structlog.get_logger(__name__)


class VersionService:
    """Service for freezing and restoring estimate snapshots.

    Versions are an append-only log: there is no way to edit or delete one.
    """

    def __init__(self, db: Database):
        """Initialize version service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_version(self, project_id: str, name: Optional[str] = None) -> str:
        """Deep-copy views, sections and items into the next numbered version.

        Args:
            project_id: Project ID
            name: Optional label

        Returns:
            Version ID

        Raises:
            NotFoundError: If project doesn't exist
        """
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))
        name = (name or "").strip() or None
        version_id = self.db.create_version(project_id, name=name)
        logger.info("version_created", project_id=project_id, version_id=version_id)
        return version_id

    def list_versions(self, project_id: str) -> list[VersionEntity]:
        """List versions of a project, newest first."""
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))
        return self.db.list_versions(project_id)

    def get_version(self, version_id: str) -> VersionSnapshot:
        """Get the full content of a version.

        Raises:
            NotFoundError: If version doesn't exist
        """
        snapshot = self.db.get_version_snapshot(version_id)
        if snapshot is None:
            raise NotFoundError(version_not_found(version_id))
        return snapshot

    def restore_version(self, version_id: str) -> None:
        """Replace the live views, sections and items with a version's content.

        Live identities are regenerated. Acts, payments, completions and other
        versions are left untouched. The replacement is destructive; callers
        are expected to confirm it.

        Raises:
            NotFoundError: If the version or its project doesn't exist
        """
        version = self.db.get_version(version_id)
        if version is None:
            raise NotFoundError(version_not_found(version_id))
        if self.db.get_project(version.project_id) is None:
            raise NotFoundError(project_not_found(version.project_id))
        self.db.restore_version(version_id)
        logger.warning("version_restored", project_id=version.project_id, version_id=version_id)
