from __future__ import annotations

from dataclasses import dataclass

from rastergraph.application.services.containment_service import ContainmentGraph
from rastergraph.application.services.indexing_service import IndexProjector
from rastergraph.application.services.resource_service import ResourceService
from rastergraph.core.config import AppPaths
from rastergraph.infrastructure.content.store import ArchiveContentStore, ContentStore
from rastergraph.infrastructure.db.repos.containment_repo import ContainmentRepo
from rastergraph.infrastructure.db.repos.file_repo import FileRepo
from rastergraph.infrastructure.db.repos.resource_repo import ResourceRepo
from rastergraph.infrastructure.index.search_index import MemorySearchIndex, SearchIndex


@dataclass(slots=True)
class RepositoryGraph:
    resources: ResourceService
    containment: ContainmentGraph
    projector: IndexProjector
    content_store: ContentStore
    search_index: SearchIndex


def open_repository(
    paths: AppPaths,
    content_store: ContentStore | None = None,
    search_index: SearchIndex | None = None,
) -> RepositoryGraph:
    """Wire repositories and services for an initialized project.

    Collaborators default to the on-disk archive and an in-memory index.
    """
    resource_repo = ResourceRepo(paths.db_path)
    containment_repo = ContainmentRepo(paths.db_path)
    store = content_store if content_store is not None else ArchiveContentStore(paths.content_dir)
    index = search_index if search_index is not None else MemorySearchIndex()
    projector = IndexProjector()

    resources = ResourceService(
        resource_repo=resource_repo,
        file_repo=FileRepo(paths.db_path),
        containment_repo=containment_repo,
        content_store=store,
        projector=projector,
        search_index=index,
    )
    containment = ContainmentGraph(containment_repo=containment_repo, resource_repo=resource_repo)
    return RepositoryGraph(
        resources=resources,
        containment=containment,
        projector=projector,
        content_store=store,
        search_index=index,
    )
