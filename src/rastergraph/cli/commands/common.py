from __future__ import annotations

from rastergraph.application.services.graph_service import RepositoryGraph, open_repository
from rastergraph.application.services.project_service import ProjectService
from rastergraph.cli.context import CLIContext
from rastergraph.core.errors import ProjectNotInitializedError, ValidationError
from rastergraph.domain.models.resource import Resource


def require_initialized_project(ctx: CLIContext) -> None:
    project_service = ProjectService(ctx.paths)
    if not project_service.is_initialized():
        raise ProjectNotInitializedError(
            f"Project is not initialized. Run 'rastergraph init' first in {ctx.paths.project_root}"
        )
    # Ensure latest schema objects exist even on older DBs.
    project_service.init_project()


def open_graph(ctx: CLIContext) -> RepositoryGraph:
    require_initialized_project(ctx)
    return open_repository(ctx.paths)


def load_resource(graph: RepositoryGraph, resource_id: str) -> Resource:
    resource = graph.resources.get(resource_id)
    if resource is None:
        raise ValidationError(f"Resource not found: {resource_id}")
    return resource
