from pathlib import Path

from rastergraph.infrastructure.db.sqlite import get_connection, initialize_schema


def test_connection_enables_wal_and_busy_timeout(tmp_path: Path) -> None:
    db_path = tmp_path / "rastergraph.db"
    initialize_schema(db_path)

    with get_connection(db_path) as conn:
        journal_mode = conn.execute("PRAGMA journal_mode;").fetchone()[0]
        busy_timeout = conn.execute("PRAGMA busy_timeout;").fetchone()[0]
        foreign_keys = conn.execute("PRAGMA foreign_keys;").fetchone()[0]

    assert str(journal_mode).lower() == "wal"
    assert int(busy_timeout) >= 30_000
    assert int(foreign_keys) == 1


def test_busy_timeout_env_override(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "rastergraph.db"
    monkeypatch.setenv("RASTERGRAPH_SQLITE_BUSY_TIMEOUT_MS", "5000")
    with get_connection(db_path) as conn:
        assert int(conn.execute("PRAGMA busy_timeout;").fetchone()[0]) == 5000

    monkeypatch.setenv("RASTERGRAPH_SQLITE_BUSY_TIMEOUT_MS", "not-a-number")
    with get_connection(db_path) as conn:
        assert int(conn.execute("PRAGMA busy_timeout;").fetchone()[0]) == 30_000


def test_schema_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "rastergraph.db"
    initialize_schema(db_path)
    initialize_schema(db_path)

    with get_connection(db_path) as conn:
        tables = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        }
    assert {"resources", "file_attachments", "containment_edges"} <= tables
