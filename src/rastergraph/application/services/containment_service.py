from __future__ import annotations

import logging
from collections.abc import Iterator

from rastergraph.core.errors import SaveError, ValidationError
from rastergraph.core.time import now_utc_iso
from rastergraph.domain.models.resource import Resource
from rastergraph.infrastructure.db.repos.containment_repo import ContainmentRepo
from rastergraph.infrastructure.db.repos.resource_repo import ResourceRepo

logger = logging.getLogger(__name__)


class MemberSequence:
    """Re-iterable view over the members of an aggregation, in insertion order.

    Members are fetched page by page on iteration; nothing is cached, so each
    new iteration sees the current state of the graph.
    """

    def __init__(
        self,
        aggregation_id: str,
        containment_repo: ContainmentRepo,
        resource_repo: ResourceRepo,
        page_size: int = 100,
    ) -> None:
        self.aggregation_id = aggregation_id
        self.containment_repo = containment_repo
        self.resource_repo = resource_repo
        self.page_size = page_size

    def __iter__(self) -> Iterator[Resource]:
        after_seq = 0
        while True:
            page = self.containment_repo.member_ids(
                self.aggregation_id, after_seq=after_seq, limit=self.page_size
            )
            if not page:
                return
            for seq, member_id in page:
                after_seq = seq
                member = self.resource_repo.get_by_id(member_id)
                if member is not None:
                    yield member
            if len(page) < self.page_size:
                return

    def first(self) -> Resource | None:
        return next(iter(self), None)

    def last(self) -> Resource | None:
        last = None
        for member in self:
            last = member
        return last


class ContainmentGraph:
    def __init__(self, containment_repo: ContainmentRepo, resource_repo: ResourceRepo) -> None:
        self.containment_repo = containment_repo
        self.resource_repo = resource_repo

    def add_member(self, aggregation: Resource, member: Resource) -> bool:
        """Link ``member`` into ``aggregation``; returns False if the edge already existed."""
        for resource in (aggregation, member):
            if resource.is_new or not self.resource_repo.exists(resource.id):
                raise SaveError(f"Resource {resource.id} must be saved before it can be linked")
        if aggregation.id == member.id:
            raise ValidationError(f"Resource {member.id} cannot contain itself")
        if member.id in self._ancestor_ids(aggregation.id):
            raise ValidationError(
                f"Linking {member.id} into {aggregation.id} would create a containment cycle"
            )

        created = self.containment_repo.link(aggregation.id, member.id, linked_at=now_utc_iso())
        if created:
            logger.debug("Linked %s into aggregation %s", member.id, aggregation.id)
        return created

    def remove_member(self, aggregation: Resource, member: Resource) -> bool:
        return self.containment_repo.unlink(aggregation.id, member.id)

    def members_of(self, aggregation: Resource) -> MemberSequence:
        return MemberSequence(aggregation.id, self.containment_repo, self.resource_repo)

    def related_of(self, resource: Resource) -> list[Resource]:
        related: list[Resource] = []
        for sibling_id in self.containment_repo.sibling_ids(resource.id):
            sibling = self.resource_repo.get_by_id(sibling_id)
            if sibling is not None:
                related.append(sibling)
        return related

    def parent_of(self, resource: Resource) -> Resource | None:
        for parent_id in self.containment_repo.parent_ids(resource.id):
            parent = self.resource_repo.get_by_id(parent_id)
            if parent is not None:
                return parent
        return None

    def parents_of(self, resource: Resource) -> list[Resource]:
        parents: list[Resource] = []
        for parent_id in self.containment_repo.parent_ids(resource.id):
            parent = self.resource_repo.get_by_id(parent_id)
            if parent is not None:
                parents.append(parent)
        return parents

    def _ancestor_ids(self, resource_id: str) -> set[str]:
        seen: set[str] = set()
        frontier = [resource_id]
        while frontier:
            current = frontier.pop()
            for parent_id in self.containment_repo.parent_ids(current):
                if parent_id not in seen:
                    seen.add(parent_id)
                    frontier.append(parent_id)
        return seen
