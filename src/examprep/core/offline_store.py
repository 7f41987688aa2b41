"""Offline copy of exams and answers, kept in a separate SQLite file.

The store mirrors three object stores:
- exams: downloaded exams with their questions (key: exam id)
- progress: answers given while offline (key: exam id)
- metadata: one "stats" row with the exam count and last sync time

Progress saved offline stays unsynced until sync_pending() replays it
through the challenge or study service.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Generator

import structlog

from examprep.core import challenge, study
from examprep.core.errors import ExamPrepError, ValidationError
from examprep.db.database import utc_now_iso
from examprep.db.exams_repository import ExamRecord, QuestionRecord

logger = structlog.get_logger(__name__)

PROGRESS_MODES = ("challenge", "study")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS offline_exams (
    exam_id TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    downloaded_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS offline_progress (
    exam_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    mode TEXT NOT NULL DEFAULT 'challenge',
    answers TEXT NOT NULL DEFAULT '{}',
    elapsed_seconds INTEGER NOT NULL DEFAULT 0,
    saved_at TEXT NOT NULL,
    synced INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS offline_metadata (
    key TEXT PRIMARY KEY,
    exam_count INTEGER NOT NULL DEFAULT 0,
    last_sync TEXT
);
"""


@dataclass
class OfflineProgress:
    exam_id: str
    user_id: str
    mode: str
    answers: dict[str, int]
    elapsed_seconds: int
    saved_at: str
    synced: bool


@dataclass
class StorageStats:
    exam_count: int
    last_sync: str | None
    estimated_size: int  # bytes of JSON


@dataclass
class SyncReport:
    synced: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


class OfflineStore:
    """SQLite-backed offline cache for one device."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _refresh_metadata(self, conn: sqlite3.Connection, synced: bool = False) -> None:
        count = conn.execute("SELECT COUNT(*) FROM offline_exams").fetchone()[0]
        now = utc_now_iso()
        conn.execute(
            """
            INSERT INTO offline_metadata (key, exam_count, last_sync) VALUES ('stats', ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                exam_count = excluded.exam_count,
                last_sync = CASE WHEN ? THEN excluded.last_sync ELSE offline_metadata.last_sync END
            """,
            (count, now, int(synced)),
        )

    # =========================================================================
    # EXAMS
    # =========================================================================

    def download_exam(self, exam: ExamRecord, questions: list[QuestionRecord]) -> None:
        """Store an exam and its questions for offline use."""
        payload = {"exam": asdict(exam), "questions": [asdict(q) for q in questions]}
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO offline_exams (exam_id, payload, downloaded_at)
                VALUES (?, ?, ?)
                """,
                (exam.id, json.dumps(payload, ensure_ascii=False), utc_now_iso()),
            )
            self._refresh_metadata(conn, synced=True)
        logger.info("offline.exam_downloaded", exam_id=exam.id, questions=len(questions))

    def downloaded_exams(self) -> list[dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT payload FROM offline_exams ORDER BY downloaded_at"
            ).fetchall()
        return [json.loads(row["payload"]) for row in rows]

    def get_exam(self, exam_id: str) -> dict[str, Any] | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload FROM offline_exams WHERE exam_id = ?", (exam_id,)
            ).fetchone()
        return json.loads(row["payload"]) if row else None

    def remove_exam(self, exam_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM offline_exams WHERE exam_id = ?", (exam_id,))
            self._refresh_metadata(conn)
        return cursor.rowcount > 0

    # =========================================================================
    # PROGRESS
    # =========================================================================

    def save_progress(
        self,
        exam_id: str,
        user_id: str,
        answers: dict[str, int],
        mode: str = "challenge",
        elapsed_seconds: int = 0,
    ) -> OfflineProgress:
        """Save answers given offline (replacing earlier ones), unsynced."""
        if mode not in PROGRESS_MODES:
            raise ValidationError(f"Unknown progress mode '{mode}'")

        progress = OfflineProgress(
            exam_id=exam_id,
            user_id=user_id,
            mode=mode,
            answers=dict(answers),
            elapsed_seconds=elapsed_seconds,
            saved_at=utc_now_iso(),
            synced=False,
        )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO offline_progress
                    (exam_id, user_id, mode, answers, elapsed_seconds, saved_at, synced)
                VALUES (?, ?, ?, ?, ?, ?, 0)
                """,
                (
                    exam_id,
                    user_id,
                    mode,
                    json.dumps(progress.answers),
                    elapsed_seconds,
                    progress.saved_at,
                ),
            )
        return progress

    def get_progress(self, exam_id: str) -> OfflineProgress | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM offline_progress WHERE exam_id = ?", (exam_id,)
            ).fetchone()
        return _row_to_progress(row) if row else None

    def unsynced_progress(self, user_id: str | None = None) -> list[OfflineProgress]:
        sql = "SELECT * FROM offline_progress WHERE synced = 0"
        params: list[Any] = []
        if user_id is not None:
            sql += " AND user_id = ?"
            params.append(user_id)
        with self._connect() as conn:
            rows = conn.execute(sql + " ORDER BY saved_at", params).fetchall()
        return [_row_to_progress(row) for row in rows]

    def mark_synced(self, exam_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE offline_progress SET synced = 1 WHERE exam_id = ?", (exam_id,)
            )
            self._refresh_metadata(conn, synced=True)
        return cursor.rowcount > 0

    # =========================================================================
    # STATS
    # =========================================================================

    def storage_stats(self) -> StorageStats:
        with self._connect() as conn:
            meta = conn.execute(
                "SELECT exam_count, last_sync FROM offline_metadata WHERE key = 'stats'"
            ).fetchone()
            payloads = conn.execute("SELECT payload FROM offline_exams").fetchall()

        size = len(json.dumps([json.loads(row["payload"]) for row in payloads]))
        if meta is None:
            return StorageStats(exam_count=0, last_sync=None, estimated_size=size)
        return StorageStats(
            exam_count=meta["exam_count"],
            last_sync=meta["last_sync"],
            estimated_size=size,
        )

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM offline_exams")
            conn.execute("DELETE FROM offline_progress")
            conn.execute("DELETE FROM offline_metadata")
        logger.info("offline.cleared", path=str(self.path))

    # =========================================================================
    # SYNC
    # =========================================================================

    def _count_correct(self, progress: OfflineProgress) -> tuple[int, int]:
        stored = self.get_exam(progress.exam_id)
        if stored is None:
            raise ValidationError(f"Exam '{progress.exam_id}' is not downloaded")
        questions = stored["questions"]
        correct = sum(
            1 for q in questions if progress.answers.get(q["id"]) == q["correct_option"]
        )
        return correct, len(questions)

    def sync_pending(self, uid: str) -> SyncReport:
        """Submit the user's unsynced progress through the services.

        Items the services reject stay unsynced and are listed in the
        report with the error message. Challenge progress is graded against
        the start recorded online, so a challenge never started is rejected.
        """
        report = SyncReport()
        for progress in self.unsynced_progress(uid):
            try:
                if progress.mode == "challenge":
                    challenge.submit_challenge(uid, progress.exam_id, progress.answers)
                else:
                    correct, total = self._count_correct(progress)
                    study.complete_study_session(
                        uid,
                        progress.exam_id,
                        correct,
                        total,
                        time_spent=progress.elapsed_seconds // 60,
                    )
            except ExamPrepError as e:
                logger.warning("offline.sync_failed", exam_id=progress.exam_id, error=str(e))
                report.failed[progress.exam_id] = str(e)
                continue

            self.mark_synced(progress.exam_id)
            report.synced.append(progress.exam_id)

        logger.info("offline.synced", uid=uid, synced=len(report.synced), failed=len(report.failed))
        return report


def _row_to_progress(row) -> OfflineProgress:
    return OfflineProgress(
        exam_id=row["exam_id"],
        user_id=row["user_id"],
        mode=row["mode"],
        answers=json.loads(row["answers"]),
        elapsed_seconds=row["elapsed_seconds"],
        saved_at=row["saved_at"],
        synced=bool(row["synced"]),
    )
