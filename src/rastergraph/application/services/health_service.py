from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rastergraph.core.vocab import PCDM_FILE
from rastergraph.infrastructure.content.store import ArchiveContentStore
from rastergraph.infrastructure.db.repos.containment_repo import ContainmentRepo
from rastergraph.infrastructure.db.repos.file_repo import FileRepo
from rastergraph.infrastructure.db.repos.resource_repo import ResourceRepo
from rastergraph.infrastructure.db.sqlite import get_connection


@dataclass(slots=True)
class DoctorIssue:
    check: str
    level: str
    message: str


@dataclass(slots=True)
class DoctorReport:
    ok: bool
    checks_run: int
    issues: list[DoctorIssue]
    db_runtime: dict[str, object]


class HealthService:
    def __init__(self, db_path: Path, content_dir: Path) -> None:
        self.db_path = db_path
        self.content_dir = content_dir

    def run_doctor(self) -> DoctorReport:
        issues: list[DoctorIssue] = []
        checks_run = 0

        file_repo = FileRepo(self.db_path)
        store = ArchiveContentStore(self.content_dir)

        # Check 1: database runtime pragmas.
        checks_run += 1
        with get_connection(self.db_path) as conn:
            journal_mode_raw = conn.execute("PRAGMA journal_mode;").fetchone()[0]
            busy_timeout_raw = conn.execute("PRAGMA busy_timeout;").fetchone()[0]
            foreign_keys_raw = conn.execute("PRAGMA foreign_keys;").fetchone()[0]
            synchronous_raw = conn.execute("PRAGMA synchronous;").fetchone()[0]

        journal_mode = str(journal_mode_raw).lower()
        busy_timeout_ms = int(busy_timeout_raw)
        foreign_keys = int(foreign_keys_raw)

        db_runtime: dict[str, object] = {
            "journal_mode": journal_mode,
            "busy_timeout_ms": busy_timeout_ms,
            "foreign_keys": bool(foreign_keys),
            "synchronous": int(synchronous_raw),
        }

        if journal_mode != "wal":
            issues.append(
                DoctorIssue(
                    check="db_runtime",
                    level="error",
                    message=f"SQLite journal_mode is '{journal_mode}', expected 'wal'.",
                )
            )
        if foreign_keys != 1:
            issues.append(
                DoctorIssue(
                    check="db_runtime",
                    level="error",
                    message="SQLite foreign_keys pragma is disabled; cascading deletes will not run.",
                )
            )
        if busy_timeout_ms < 1_000:
            issues.append(
                DoctorIssue(
                    check="db_runtime",
                    level="warning",
                    message=f"SQLite busy_timeout is low ({busy_timeout_ms}ms); consider >= 1000ms.",
                )
            )

        attachments = file_repo.list_all()

        # Check 2: every stored file has a blob with a matching digest.
        checks_run += 1
        for attachment in attachments:
            digest = attachment.digest_sha256 or ""
            if not store.exists(digest):
                issues.append(
                    DoctorIssue(
                        check="content_integrity",
                        level="error",
                        message=f"Missing content for file {attachment.id}: {digest}",
                    )
                )
                continue
            if not store.verify_integrity(digest):
                issues.append(
                    DoctorIssue(
                        check="content_integrity",
                        level="error",
                        message=f"Digest mismatch for file {attachment.id}: {digest}",
                    )
                )

        # Check 3: every stored file keeps the pcdm:File type.
        checks_run += 1
        for attachment in attachments:
            if not attachment.has_type(PCDM_FILE):
                issues.append(
                    DoctorIssue(
                        check="type_tags",
                        level="warning",
                        message=f"File {attachment.id} is missing the {PCDM_FILE} type",
                    )
                )

        # Check 4: containment edges point at existing resources.
        checks_run += 1
        resource_ids = {r.id for r in ResourceRepo(self.db_path).list(limit=1_000_000)}
        for edge in ContainmentRepo(self.db_path).list_all():
            if edge.aggregation_id in resource_ids and edge.member_id in resource_ids:
                continue
            issues.append(
                DoctorIssue(
                    check="containment",
                    level="error",
                    message=(
                        f"Dangling containment edge {edge.seq}: "
                        f"{edge.aggregation_id} -> {edge.member_id}"
                    ),
                )
            )

        ok = not any(issue.level == "error" for issue in issues)
        return DoctorReport(ok=ok, checks_run=checks_run, issues=issues, db_runtime=db_runtime)
