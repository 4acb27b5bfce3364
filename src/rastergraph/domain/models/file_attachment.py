from __future__ import annotations

from dataclasses import dataclass, field

from rastergraph.core.errors import InvalidRoleError
from rastergraph.core.vocab import PCDM_FILE, PCDM_USE_ORIGINAL_FILE, PCDM_USE_THUMBNAIL_IMAGE

ROLE_ORIGINAL_FILE = "original_file"
ROLE_THUMBNAIL = "thumbnail"
ROLE_FILES = "files"


@dataclass(frozen=True, slots=True)
class RoleSpec:
    name: str
    singleton: bool
    type_tags: tuple[str, ...]


ROLES: dict[str, RoleSpec] = {
    ROLE_ORIGINAL_FILE: RoleSpec(ROLE_ORIGINAL_FILE, True, (PCDM_FILE, PCDM_USE_ORIGINAL_FILE)),
    ROLE_THUMBNAIL: RoleSpec(ROLE_THUMBNAIL, True, (PCDM_FILE, PCDM_USE_THUMBNAIL_IMAGE)),
    ROLE_FILES: RoleSpec(ROLE_FILES, False, (PCDM_FILE,)),
}

ROLE_ALIASES = {
    "original": ROLE_ORIGINAL_FILE,
    "preview": ROLE_THUMBNAIL,
}


def resolve_role(name: str) -> RoleSpec:
    canonical = ROLE_ALIASES.get(name, name)
    try:
        return ROLES[canonical]
    except KeyError:
        raise InvalidRoleError(f"Unknown file role: {name}") from None


@dataclass(slots=True, eq=False)
class FileAttachment:
    id: str
    resource_id: str
    role: str | None
    type_tags: list[str] = field(default_factory=lambda: [PCDM_FILE])
    content: bytes | None = None
    is_new: bool = True
    digest_sha256: str | None = None
    mime_type: str = "application/octet-stream"
    original_name: str | None = None
    size_bytes: int = 0
    saved_at: str | None = None

    def add_type(self, tag: str) -> None:
        if tag not in self.type_tags:
            self.type_tags.append(tag)

    def has_type(self, tag: str) -> bool:
        return tag in self.type_tags
