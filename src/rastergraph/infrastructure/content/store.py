from __future__ import annotations

from pathlib import Path
from typing import Protocol

from rastergraph.core.errors import ContentStoreError
from rastergraph.core.files import ensure_directory, make_read_only, make_writable, write_bytes_atomic
from rastergraph.core.hashing import compute_bytes_digest, compute_file_digest


class ContentStore(Protocol):
    def store(self, data: bytes) -> str: ...

    def retrieve(self, handle: str) -> bytes: ...

    def discard(self, handle: str) -> None: ...

    def exists(self, handle: str) -> bool: ...


class ArchiveContentStore:
    """Content-addressed blob archive; handles are sha256 hex digests."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir

    def ensure_archive_layout(self) -> None:
        ensure_directory(self.base_dir)
        ensure_directory(self.base_dir / "sha256")

    def archive_relpath_for_digest(self, digest_sha256: str) -> Path:
        shard_a = digest_sha256[:2]
        shard_b = digest_sha256[2:4]
        return Path("sha256") / shard_a / shard_b / digest_sha256

    def archive_abspath_for_digest(self, digest_sha256: str) -> Path:
        return self.base_dir / self.archive_relpath_for_digest(digest_sha256)

    def store(self, data: bytes) -> str:
        digest = compute_bytes_digest(data, "sha256")
        dst = self.archive_abspath_for_digest(digest)
        try:
            self.ensure_archive_layout()
            if not dst.exists():
                write_bytes_atomic(data, dst)
                make_read_only(dst)
        except OSError as exc:
            raise ContentStoreError(f"Failed to store content {digest}: {exc}") from exc
        return digest

    def retrieve(self, handle: str) -> bytes:
        path = self.archive_abspath_for_digest(handle)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ContentStoreError(f"Failed to read content {handle}: {exc}") from exc

    def discard(self, handle: str) -> None:
        path = self.archive_abspath_for_digest(handle)
        if not path.exists():
            return
        try:
            make_writable(path)
            path.unlink()
        except OSError as exc:
            raise ContentStoreError(f"Failed to discard content {handle}: {exc}") from exc

    def exists(self, handle: str) -> bool:
        return self.archive_abspath_for_digest(handle).exists()

    def verify_integrity(self, handle: str) -> bool:
        path = self.archive_abspath_for_digest(handle)
        if not path.exists():
            return False
        return compute_file_digest(path, "sha256") == handle
