from __future__ import annotations

import json
from pathlib import Path

from rastergraph.domain.models.resource import Resource
from rastergraph.infrastructure.db.sqlite import get_connection


class ResourceRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def upsert(self, resource: Resource, saved_at: str) -> str:
        attributes_json = json.dumps(resource.attributes, ensure_ascii=True, sort_keys=True)
        with get_connection(self.db_path) as conn:
            existing = conn.execute(
                "SELECT 1 FROM resources WHERE id = ?",
                (resource.id,),
            ).fetchone()

            if existing:
                conn.execute(
                    """
                    UPDATE resources
                    SET attributes_json = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (attributes_json, saved_at, resource.id),
                )
                conn.commit()
                return "updated"

            conn.execute(
                """
                INSERT INTO resources (
                    id,
                    model,
                    attributes_json,
                    created_at,
                    updated_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (resource.id, resource.model, attributes_json, saved_at, saved_at),
            )
            conn.commit()
            return "inserted"

    def exists(self, resource_id: str) -> bool:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM resources WHERE id = ?",
                (resource_id,),
            ).fetchone()
        return row is not None

    def get_by_id(self, resource_id: str) -> Resource | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM resources WHERE id = ?",
                (resource_id,),
            ).fetchone()
        return self._to_model(row) if row else None

    def list(self, model: str | None = None, limit: int = 100) -> list[Resource]:
        with get_connection(self.db_path) as conn:
            if model is None:
                rows = conn.execute(
                    """
                    SELECT * FROM resources
                    ORDER BY created_at DESC, rowid DESC
                    LIMIT ?
                    """,
                    (limit,),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM resources
                    WHERE model = ?
                    ORDER BY created_at DESC, rowid DESC
                    LIMIT ?
                    """,
                    (model, limit),
                ).fetchall()
        return [self._to_model(row) for row in rows]

    def delete(self, resource_id: str) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute("DELETE FROM resources WHERE id = ?", (resource_id,))
            conn.commit()

    @staticmethod
    def _to_model(row) -> Resource:
        return Resource(
            id=row["id"],
            model=row["model"],
            attributes=json.loads(row["attributes_json"] or "{}"),
            is_new=False,
        )
