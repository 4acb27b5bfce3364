from __future__ import annotations

import logging

from rastergraph.core.errors import (
    ContentStoreError,
    RetrieveError,
    SaveError,
    ValidationError,
)
from rastergraph.core.ids import new_uuid
from rastergraph.core.time import now_utc_iso
from rastergraph.domain.models.file_attachment import (
    ROLE_FILES,
    ROLE_ORIGINAL_FILE,
    ROLE_THUMBNAIL,
    ROLES,
    FileAttachment,
    resolve_role,
)
from rastergraph.domain.models.resource import Resource
from rastergraph.infrastructure.content.store import ContentStore
from rastergraph.infrastructure.db.repos.file_repo import FileRepo
from rastergraph.infrastructure.db.repos.resource_repo import ResourceRepo

logger = logging.getLogger(__name__)


class FileRegistry:
    """Typed file attachments of a single resource.

    Singleton roles (``original_file``, ``thumbnail``) hold at most one
    attachment each; the ``files`` role is an unordered list. Content is
    buffered on the attachment until it is saved through the content store.
    """

    def __init__(
        self,
        resource: Resource,
        file_repo: FileRepo,
        resource_repo: ResourceRepo,
        content_store: ContentStore,
    ) -> None:
        self.resource = resource
        self.file_repo = file_repo
        self.resource_repo = resource_repo
        self.content_store = content_store
        self._slots: dict[str, FileAttachment] = {}
        self._files: list[FileAttachment] = []
        self._loaded = False

    def build(self, role: str) -> FileAttachment:
        spec = resolve_role(role)
        self._ensure_loaded()

        attachment = FileAttachment(
            id=new_uuid(),
            resource_id=self.resource.id,
            role=spec.name,
            type_tags=list(spec.type_tags),
        )
        if spec.singleton:
            previous = self._slots.get(spec.name)
            if previous is not None:
                logger.debug(
                    "Replacing %s reference %s on resource %s", spec.name, previous.id, self.resource.id
                )
            self._slots[spec.name] = attachment
        else:
            self._files.append(attachment)
        return attachment

    def build_typed(self, role: str, extra_type_tag: str) -> FileAttachment:
        attachment = self.build(role)
        attachment.add_type(extra_type_tag)
        return attachment

    def build_original_file(self) -> FileAttachment:
        return self.build(ROLE_ORIGINAL_FILE)

    def build_thumbnail(self) -> FileAttachment:
        return self.build(ROLE_THUMBNAIL)

    @staticmethod
    def add_type(attachment: FileAttachment, type_tag: str) -> FileAttachment:
        attachment.add_type(type_tag)
        return attachment

    @staticmethod
    def attach_content(
        attachment: FileAttachment,
        data: bytes | str,
        *,
        mime_type: str | None = None,
        original_name: str | None = None,
    ) -> FileAttachment:
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        attachment.content = payload
        attachment.size_bytes = len(payload)
        if mime_type:
            attachment.mime_type = mime_type
        if original_name:
            attachment.original_name = original_name
        return attachment

    def get(self, role: str) -> FileAttachment | None:
        spec = resolve_role(role)
        if not spec.singleton:
            raise ValidationError(f"Role '{role}' holds a list of files; read it through 'files'")
        self._ensure_loaded()
        attachment = self._slots.get(spec.name)
        if attachment is not None:
            self._hydrate(attachment)
        return attachment

    @property
    def original_file(self) -> FileAttachment | None:
        return self.get(ROLE_ORIGINAL_FILE)

    @property
    def thumbnail(self) -> FileAttachment | None:
        return self.get(ROLE_THUMBNAIL)

    @property
    def preview(self) -> FileAttachment | None:
        return self.get(ROLE_THUMBNAIL)

    @property
    def files(self) -> list[FileAttachment]:
        self._ensure_loaded()
        for attachment in self._files:
            self._hydrate(attachment)
        return list(self._files)

    def set_files(self, attachments: list[FileAttachment]) -> None:
        self._ensure_loaded()
        for attachment in attachments:
            self._check_owner(attachment)
        incoming = {attachment.id for attachment in attachments}
        for role, occupant in list(self._slots.items()):
            if occupant.id in incoming:
                del self._slots[role]
        for attachment in attachments:
            attachment.role = ROLE_FILES
        self._files = list(attachments)

    def save(self, attachment: FileAttachment) -> None:
        self._check_owner(attachment)
        self._ensure_loaded()
        if not self.resource_repo.exists(attachment.resource_id):
            raise SaveError(
                f"Cannot save file {attachment.id}: resource {attachment.resource_id} has not been saved"
            )
        if attachment.content is None and attachment.digest_sha256 is None:
            raise SaveError(f"Cannot save file {attachment.id}: no content attached")

        if attachment.content is not None:
            try:
                attachment.digest_sha256 = self.content_store.store(attachment.content)
            except ContentStoreError as exc:
                raise SaveError(f"Content store rejected file {attachment.id}: {exc}") from exc
            attachment.size_bytes = len(attachment.content)

        role = self._current_role_of(attachment)
        attachment.role = role
        attachment.saved_at = now_utc_iso()
        position = self._position_of(attachment) if role == ROLE_FILES else 0
        self.file_repo.upsert(attachment, position=position)
        if role is not None and ROLES[role].singleton:
            self.file_repo.detach_role(attachment.resource_id, role, keep_ids=[attachment.id])
        attachment.is_new = False
        logger.debug("Saved file %s (%s) for resource %s", attachment.id, role, attachment.resource_id)

    def save_all(self) -> int:
        """Persist every loaded attachment that has content or a stored digest."""
        if not self._loaded:
            return 0
        saved = 0
        pending = list(self._slots.values()) + list(self._files)
        for attachment in pending:
            if attachment.content is None and attachment.digest_sha256 is None:
                logger.debug("Skipping file %s without content", attachment.id)
                continue
            self.save(attachment)
            saved += 1
        self.file_repo.detach_role(
            self.resource.id,
            ROLE_FILES,
            keep_ids=[a.id for a in self._files if not a.is_new],
        )
        return saved

    def delete(self, attachment: FileAttachment) -> None:
        self._check_owner(attachment)
        self._ensure_loaded()
        for role, occupant in list(self._slots.items()):
            if occupant.id == attachment.id:
                del self._slots[role]
        self._files = [a for a in self._files if a.id != attachment.id]

        if not attachment.is_new:
            self.file_repo.delete(attachment.id)
            self._discard_if_unreferenced(attachment.digest_sha256)
        attachment.role = None

    def delete_all(self) -> int:
        stored = self.file_repo.list_for_resource(self.resource.id)
        for attachment in stored:
            self.file_repo.delete(attachment.id)
            self._discard_if_unreferenced(attachment.digest_sha256)
        self._slots.clear()
        self._files = []
        return len(stored)

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if self.resource.is_new:
            return
        for name, spec in ROLES.items():
            stored = self.file_repo.list_for_resource(self.resource.id, role=name)
            if spec.singleton:
                if stored:
                    self._slots[name] = stored[-1]
            else:
                self._files.extend(stored)

    def _hydrate(self, attachment: FileAttachment) -> None:
        if attachment.content is not None or attachment.digest_sha256 is None:
            return
        try:
            attachment.content = self.content_store.retrieve(attachment.digest_sha256)
        except ContentStoreError as exc:
            raise RetrieveError(f"Unable to read content of file {attachment.id}: {exc}") from exc

    def _current_role_of(self, attachment: FileAttachment) -> str | None:
        for role, occupant in self._slots.items():
            if occupant.id == attachment.id:
                return role
        if any(a.id == attachment.id for a in self._files):
            return ROLE_FILES
        return None

    def _position_of(self, attachment: FileAttachment) -> int:
        for position, candidate in enumerate(self._files):
            if candidate.id == attachment.id:
                return position
        return 0

    def _check_owner(self, attachment: FileAttachment) -> None:
        if attachment.resource_id != self.resource.id:
            raise ValidationError(
                f"File {attachment.id} belongs to resource {attachment.resource_id}, not {self.resource.id}"
            )

    def _discard_if_unreferenced(self, digest_sha256: str | None) -> None:
        if digest_sha256 and self.file_repo.count_by_digest(digest_sha256) == 0:
            self.content_store.discard(digest_sha256)
