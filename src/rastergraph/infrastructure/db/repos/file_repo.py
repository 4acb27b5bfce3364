from __future__ import annotations

import json
from pathlib import Path

from rastergraph.domain.models.file_attachment import FileAttachment
from rastergraph.infrastructure.db.sqlite import get_connection


class FileRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def upsert(self, attachment: FileAttachment, position: int = 0) -> str:
        type_tags_json = json.dumps(attachment.type_tags, ensure_ascii=True)
        with get_connection(self.db_path) as conn:
            existing = conn.execute(
                "SELECT 1 FROM file_attachments WHERE id = ?",
                (attachment.id,),
            ).fetchone()

            if existing:
                conn.execute(
                    """
                    UPDATE file_attachments
                    SET
                        role = ?,
                        position = ?,
                        type_tags_json = ?,
                        digest_sha256 = ?,
                        mime_type = ?,
                        original_name = ?,
                        size_bytes = ?,
                        saved_at = ?
                    WHERE id = ?
                    """,
                    (
                        attachment.role,
                        position,
                        type_tags_json,
                        attachment.digest_sha256,
                        attachment.mime_type,
                        attachment.original_name,
                        attachment.size_bytes,
                        attachment.saved_at,
                        attachment.id,
                    ),
                )
                conn.commit()
                return "updated"

            conn.execute(
                """
                INSERT INTO file_attachments (
                    id,
                    resource_id,
                    role,
                    position,
                    type_tags_json,
                    digest_sha256,
                    mime_type,
                    original_name,
                    size_bytes,
                    saved_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    attachment.id,
                    attachment.resource_id,
                    attachment.role,
                    position,
                    type_tags_json,
                    attachment.digest_sha256,
                    attachment.mime_type,
                    attachment.original_name,
                    attachment.size_bytes,
                    attachment.saved_at,
                ),
            )
            conn.commit()
            return "inserted"

    def get_by_id(self, attachment_id: str) -> FileAttachment | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM file_attachments WHERE id = ?",
                (attachment_id,),
            ).fetchone()
        return self._to_model(row) if row else None

    def list_for_resource(self, resource_id: str, role: str | None = None) -> list[FileAttachment]:
        with get_connection(self.db_path) as conn:
            if role is None:
                rows = conn.execute(
                    """
                    SELECT * FROM file_attachments
                    WHERE resource_id = ?
                    ORDER BY saved_at ASC, rowid ASC
                    """,
                    (resource_id,),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM file_attachments
                    WHERE resource_id = ? AND role = ?
                    ORDER BY position ASC, rowid ASC
                    """,
                    (resource_id, role),
                ).fetchall()
        return [self._to_model(row) for row in rows]

    def list_all(self) -> list[FileAttachment]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM file_attachments ORDER BY rowid ASC").fetchall()
        return [self._to_model(row) for row in rows]

    def detach_role(self, resource_id: str, role: str, keep_ids: list[str]) -> int:
        """Clear ``role`` on stored rows of a resource that are not in ``keep_ids``."""
        placeholders = ", ".join("?" for _ in keep_ids)
        query = "UPDATE file_attachments SET role = NULL WHERE resource_id = ? AND role = ?"
        params: list[object] = [resource_id, role]
        if keep_ids:
            query += f" AND id NOT IN ({placeholders})"
            params.extend(keep_ids)
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(query, params)
            conn.commit()
        return cursor.rowcount

    def count_by_digest(self, digest_sha256: str) -> int:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS c FROM file_attachments WHERE digest_sha256 = ?",
                (digest_sha256,),
            ).fetchone()
        return int(row["c"])

    def delete(self, attachment_id: str) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute("DELETE FROM file_attachments WHERE id = ?", (attachment_id,))
            conn.commit()

    @staticmethod
    def _to_model(row) -> FileAttachment:
        return FileAttachment(
            id=row["id"],
            resource_id=row["resource_id"],
            role=row["role"],
            type_tags=json.loads(row["type_tags_json"]),
            content=None,
            is_new=False,
            digest_sha256=row["digest_sha256"],
            mime_type=row["mime_type"],
            original_name=row["original_name"],
            size_bytes=row["size_bytes"],
            saved_at=row["saved_at"],
        )
