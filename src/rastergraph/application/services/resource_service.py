from __future__ import annotations

import logging
import sqlite3
from collections.abc import Mapping

from rastergraph.application.services.file_registry import FileRegistry
from rastergraph.application.services.indexing_service import IndexProjector
from rastergraph.core.errors import SaveError
from rastergraph.core.ids import new_uuid
from rastergraph.core.time import now_utc_iso
from rastergraph.domain.models.resource import RASTER_FILE, Resource, fields_for
from rastergraph.infrastructure.content.store import ContentStore
from rastergraph.infrastructure.db.repos.containment_repo import ContainmentRepo
from rastergraph.infrastructure.db.repos.file_repo import FileRepo
from rastergraph.infrastructure.db.repos.resource_repo import ResourceRepo
from rastergraph.infrastructure.index.search_index import SearchIndex

logger = logging.getLogger(__name__)


class ResourceService:
    def __init__(
        self,
        resource_repo: ResourceRepo,
        file_repo: FileRepo,
        containment_repo: ContainmentRepo,
        content_store: ContentStore,
        projector: IndexProjector,
        search_index: SearchIndex | None = None,
    ) -> None:
        self.resource_repo = resource_repo
        self.file_repo = file_repo
        self.containment_repo = containment_repo
        self.content_store = content_store
        self.projector = projector
        self.search_index = search_index
        self._registries: dict[str, FileRegistry] = {}

    def new(self, model: str = RASTER_FILE, attributes: Mapping[str, object] | None = None) -> Resource:
        fields_for(model)
        resource = Resource(id=new_uuid(), model=model)
        if attributes:
            resource.update_attributes(attributes)
        return resource

    def create(self, model: str = RASTER_FILE, attributes: Mapping[str, object] | None = None) -> Resource:
        return self.save(self.new(model, attributes))

    def files(self, resource: Resource) -> FileRegistry:
        registry = self._registries.get(resource.id)
        if registry is None:
            registry = FileRegistry(
                resource,
                file_repo=self.file_repo,
                resource_repo=self.resource_repo,
                content_store=self.content_store,
            )
            self._registries[resource.id] = registry
        return registry

    def save(self, resource: Resource) -> Resource:
        saved_at = now_utc_iso()
        if resource.date_uploaded is None:
            resource.date_uploaded = saved_at
        resource.date_modified = saved_at

        # The document is built before anything is written so a projection
        # failure leaves storage and the index untouched.
        try:
            document = self.projector.document_for(
                resource, parent_ids=self.containment_repo.parent_ids(resource.id)
            )
        except (ValueError, TypeError) as exc:
            raise SaveError(f"Failed to build index document for resource {resource.id}: {exc}") from exc

        try:
            action = self.resource_repo.upsert(resource, saved_at=saved_at)
        except sqlite3.Error as exc:
            raise SaveError(f"Failed to persist resource {resource.id}: {exc}") from exc
        resource.is_new = False

        registry = self._registries.get(resource.id)
        if registry is not None:
            registry.save_all()

        if self.search_index is not None:
            self.search_index.add(resource.id, document)

        logger.info("Resource %s %s (%s)", resource.id, action, resource.model)
        return resource

    def get(self, resource_id: str) -> Resource | None:
        return self.resource_repo.get_by_id(resource_id)

    def reload(self, resource: Resource) -> Resource | None:
        """Return a fresh copy from storage, dropping unsaved file attachment state."""
        self._registries.pop(resource.id, None)
        return self.resource_repo.get_by_id(resource.id)

    def list(self, model: str | None = None, limit: int = 100) -> list[Resource]:
        return self.resource_repo.list(model=model, limit=limit)

    def reindex(self, resource: Resource) -> dict[str, object]:
        document = self.projector.document_for(
            resource, parent_ids=self.containment_repo.parent_ids(resource.id)
        )
        if self.search_index is not None:
            self.search_index.add(resource.id, document)
        return document

    def delete(self, resource: Resource) -> None:
        """Remove a resource, its file attachments and the containment edges touching it.

        Other resources linked through containment are left in place.
        """
        registry = self.files(resource)
        removed_files = registry.delete_all()
        self.resource_repo.delete(resource.id)
        self._registries.pop(resource.id, None)
        if self.search_index is not None:
            self.search_index.remove(resource.id)
        resource.is_new = True
        logger.info("Resource %s deleted with %d file(s)", resource.id, removed_files)
