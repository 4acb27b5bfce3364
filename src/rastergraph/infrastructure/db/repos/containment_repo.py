from __future__ import annotations

from pathlib import Path

from rastergraph.domain.models.containment import ContainmentEdge
from rastergraph.infrastructure.db.sqlite import get_connection


class ContainmentRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def link(self, aggregation_id: str, member_id: str, linked_at: str) -> bool:
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO containment_edges (
                    aggregation_id,
                    member_id,
                    linked_at
                ) VALUES (?, ?, ?)
                """,
                (aggregation_id, member_id, linked_at),
            )
            conn.commit()
        return cursor.rowcount > 0

    def unlink(self, aggregation_id: str, member_id: str) -> bool:
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM containment_edges WHERE aggregation_id = ? AND member_id = ?",
                (aggregation_id, member_id),
            )
            conn.commit()
        return cursor.rowcount > 0

    def member_ids(self, aggregation_id: str, after_seq: int = 0, limit: int = 100) -> list[tuple[int, str]]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT seq, member_id FROM containment_edges
                WHERE aggregation_id = ? AND seq > ?
                ORDER BY seq ASC
                LIMIT ?
                """,
                (aggregation_id, after_seq, limit),
            ).fetchall()
        return [(row["seq"], row["member_id"]) for row in rows]

    def parent_ids(self, member_id: str) -> list[str]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT aggregation_id FROM containment_edges
                WHERE member_id = ?
                ORDER BY seq ASC
                """,
                (member_id,),
            ).fetchall()
        return [row["aggregation_id"] for row in rows]

    def sibling_ids(self, member_id: str) -> list[str]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT e.member_id, MIN(e.seq) AS first_seq
                FROM containment_edges e
                WHERE e.aggregation_id IN (
                    SELECT aggregation_id FROM containment_edges WHERE member_id = ?
                )
                AND e.member_id != ?
                GROUP BY e.member_id
                ORDER BY first_seq ASC
                """,
                (member_id, member_id),
            ).fetchall()
        return [row["member_id"] for row in rows]

    def exists(self, aggregation_id: str, member_id: str) -> bool:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM containment_edges WHERE aggregation_id = ? AND member_id = ?",
                (aggregation_id, member_id),
            ).fetchone()
        return row is not None

    def list_all(self) -> list[ContainmentEdge]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM containment_edges ORDER BY seq ASC").fetchall()
        return [self._to_model(row) for row in rows]

    @staticmethod
    def _to_model(row) -> ContainmentEdge:
        return ContainmentEdge(
            aggregation_id=row["aggregation_id"],
            member_id=row["member_id"],
            seq=row["seq"],
            linked_at=row["linked_at"],
        )
