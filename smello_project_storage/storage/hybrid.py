"""
Hybrid project storage with local fallback.

Presents one project CRUD interface while choosing the backing store per
call: the cloud document store when a user identity is passed, local
storage otherwise. Any cloud failure degrades to the local equivalent
instead of reaching the caller.

The identity is an explicit argument on every operation; this store never
caches or looks it up.
"""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import ProjectNotFoundError, SyncError, ValidationError
from ..id_utils import generate_project_id
from ..logging_utils import operation_logger
from ..models import Project, ProjectData, build_project, normalize_updates
from ..timestamps import utc_now_iso
from .base import PROJECTS_COLLECTION, ProjectDocumentStore, StorageConfig
from .cosmos import CosmosProjectStore
from .documents import document_to_project, project_to_document, updates_to_document
from .local import LocalProjectStore

logger = logging.getLogger(__name__)


class HybridProjectStore:
    """Project storage combining a cloud document store with local storage.

    Routing:
    - ``user_id`` given and a cloud store configured: cloud is authoritative
    - otherwise: local storage is authoritative

    Failure handling:
    - list/save/load/update/archive: a cloud error (or a miss on load and
      update) is logged and the local equivalent is returned instead
    - delete: the local copy is always removed; a cloud failure other than
      not-found is then raised as SyncError
    - migrate_to_cloud: per-project failures are logged and skipped

    No call is retried; one failed cloud call triggers exactly one fallback.
    Calls within an operation run sequentially, and updates are
    read-modify-write with last-write-wins semantics.
    """

    def __init__(
        self,
        local: LocalProjectStore,
        cloud: ProjectDocumentStore | None = None,
        collection: str = PROJECTS_COLLECTION,
    ) -> None:
        """Initialize hybrid storage.

        Args:
            local: Local project store (always available)
            cloud: Optional cloud document store
            collection: Collection holding project documents
        """
        self.local = local
        self.cloud = cloud
        self.collection = collection

    @classmethod
    def create(cls, config: StorageConfig) -> HybridProjectStore:
        """Create a hybrid store from configuration.

        The Cosmos store is only created when an endpoint is configured;
        without one every operation uses local storage.
        """
        local = LocalProjectStore.at_path(config.resolved_local_path())

        cloud: ProjectDocumentStore | None = None
        if config.cloud_enabled:
            cloud = CosmosProjectStore(config)
        else:
            logger.info("No cloud endpoint configured, using local project storage only")

        return cls(local=local, cloud=cloud, collection=PROJECTS_COLLECTION)

    async def close(self) -> None:
        """Close the cloud connection."""
        if self.cloud is not None:
            await self.cloud.close()

    async def __aenter__(self) -> HybridProjectStore:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _cloud_for(self, user_id: str | None) -> ProjectDocumentStore | None:
        if user_id and self.cloud is not None:
            return self.cloud
        return None

    def _log_fallback(
        self,
        operation: str,
        error: Exception,
        user_id: str | None,
        project_id: str | None = None,
    ) -> None:
        log = operation_logger(
            logger, operation, store="cloud", project_id=project_id, user_id=user_id
        )
        log.warning(
            f"Cloud {operation} failed, falling back to local storage: {error}",
            extra={"cause": error},
        )

    async def list_projects(self, user_id: str | None = None) -> list[Project]:
        """List projects, most recently updated first.

        With an identity: the user's non-archived cloud projects.
        """
        cloud = self._cloud_for(user_id)
        if cloud is not None:
            try:
                documents = await cloud.query_documents(
                    self.collection,
                    {"userId": user_id, "archived": False},
                    order_by="updatedAt",
                    descending=True,
                )
                return [document_to_project(doc) for doc in documents]
            except Exception as e:
                self._log_fallback("list", e, user_id)

        return await self.local.list_projects()

    async def save_project(
        self,
        product_data: ProjectData,
        document_content: str | None = None,
        document_file_name: str | None = None,
        *,
        user_id: str | None = None,
    ) -> Project:
        """Save a new project.

        Args:
            product_data: Draft holding the product and its epics
            document_content: Optional source document text
            document_file_name: Optional source document name
            user_id: Current user identity, or None when signed out

        Returns:
            The saved project; ``synced_to_cloud`` tells which store holds it
        """
        cloud = self._cloud_for(user_id)
        if cloud is not None:
            project_id = generate_project_id()
            try:
                project = build_project(
                    project_id,
                    product_data,
                    created_at=utc_now_iso(),
                    document_content=document_content,
                    document_file_name=document_file_name,
                )
                doc_id = await cloud.create_document(
                    self.collection,
                    project_to_document(project, user_id),  # type: ignore[arg-type]
                    document_id=project_id,
                )
                created = await cloud.get_document(self.collection, doc_id)
                if created is not None:
                    return document_to_project(created)
                operation_logger(
                    logger, "save", store="cloud", project_id=doc_id, user_id=user_id
                ).warning(f"Cloud project {doc_id} was not readable after create, saving locally")
            except Exception as e:
                self._log_fallback("save", e, user_id, project_id)

        return await self.local.save_project(product_data, document_content, document_file_name)

    async def load_project(self, project_id: str, *, user_id: str | None = None) -> Project | None:
        """Load a project by id.

        Returns:
            The project, or None if neither consulted store has it
        """
        cloud = self._cloud_for(user_id)
        if cloud is not None:
            try:
                doc = await cloud.get_document(self.collection, project_id)
                if doc is not None:
                    return document_to_project(doc)
            except Exception as e:
                self._log_fallback("load", e, user_id, project_id)

        return await self.local.load_project(project_id)

    async def update_project(
        self,
        project_id: str,
        updates: dict[str, Any],
        *,
        user_id: str | None = None,
    ) -> Project | None:
        """Merge a partial update into a project.

        Fields absent from ``updates`` are preserved.

        Raises:
            ValidationError: If updates name an unknown field or change the id

        Returns:
            The updated project, or None if it was not found
        """
        normalize_updates(updates, project_id=project_id)

        cloud = self._cloud_for(user_id)
        if cloud is not None:
            try:
                await cloud.update_document(
                    self.collection, project_id, updates_to_document(updates)
                )
                doc = await cloud.get_document(self.collection, project_id)
                if doc is not None:
                    return document_to_project(doc)
            except Exception as e:
                self._log_fallback("update", e, user_id, project_id)

        return await self.local.update_project(project_id, updates)

    async def archive_project(
        self, project_id: str, *, user_id: str | None = None
    ) -> Project | None:
        """Soft-delete a project; archived projects are left out of listings."""
        return await self.update_project(project_id, {"archived": True}, user_id=user_id)

    async def delete_project(self, project_id: str, *, user_id: str | None = None) -> None:
        """Hard-delete a project.

        The local copy is always removed, with or without an identity, so a
        stale cached duplicate cannot reappear after sign-out. Deleting an
        unknown id is a no-op.

        Raises:
            SyncError: If the cloud delete failed; the local copy is
                already gone at that point
        """
        cloud_error: Exception | None = None

        cloud = self._cloud_for(user_id)
        if cloud is not None:
            try:
                await cloud.delete_document(self.collection, project_id)
            except ProjectNotFoundError:
                pass  # Already gone remotely
            except Exception as e:
                log = operation_logger(
                    logger, "delete", store="cloud", project_id=project_id, user_id=user_id
                )
                log.error(
                    f"Failed to delete project {project_id} from cloud: {e}", extra={"cause": e}
                )
                cloud_error = e

        await self.local.delete_project(project_id)

        if cloud_error is not None:
            raise SyncError(
                f"Project {project_id} removed locally but cloud delete failed",
                project_id=project_id,
                cause=cloud_error,
            ) from cloud_error

    async def migrate_to_cloud(self, user_id: str) -> int:
        """Copy every local project into the cloud store under ``user_id``.

        Original ids are preserved. Projects are migrated one at a time; a
        failure on one project is logged and skipped.

        Returns:
            Number of projects successfully migrated
        """
        if not user_id:
            raise ValidationError("user_id", "an identity is required to migrate projects")

        log = operation_logger(logger, "migrate", store="cloud", user_id=user_id)

        if self.cloud is None:
            log.warning("No cloud store configured, nothing migrated")
            return 0

        local_projects = await self.local.all_projects()
        migrated = 0
        for project in local_projects:
            try:
                await self.cloud.create_document(
                    self.collection,
                    project_to_document(project, user_id),
                    document_id=project.id,
                )
                migrated += 1
            except Exception as e:
                log.error(
                    f"Error migrating project {project.id}: {e}",
                    extra={"project_id": project.id, "cause": e},
                )

        log.info(f"Migrated {migrated}/{len(local_projects)} local projects to cloud")
        return migrated

    async def find_similar_project(self, description: str) -> Project | None:
        """Find a local project with an overlapping description."""
        return await self.local.find_similar_project(description)
