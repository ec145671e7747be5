"""SQLite-backed study material store.

Persists generated study documents to a local SQLite database at
``data/study_materials.db``.  Uses ``aiosqlite`` for async I/O.

Layout: one ``study_materials`` row per generated document (summary
stored as a JSON array), with flashcards, quiz questions and hashtags in
child tables so quizzes can be listed and counted per user without
decoding whole documents.  Every ``aiosqlite`` / filesystem failure is
re-raised as :class:`PersistenceError`.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.study_store_provider import IStudyMaterialStore
from src.models.material import StoredStudyMaterial
from src.models.study import Flashcard, QuizQuestion, StudyDocument
from src.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/study_materials.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS study_materials (
    id                    TEXT PRIMARY KEY,
    user_id               TEXT NOT NULL,
    source_url            TEXT NOT NULL,
    summary               TEXT NOT NULL,
    difficulty_level      TEXT,
    estimated_study_time  TEXT,
    thumbnail             TEXT,
    created_at            TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS flashcards (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    material_id  TEXT    NOT NULL REFERENCES study_materials(id) ON DELETE CASCADE,
    user_id      TEXT    NOT NULL,
    position     INTEGER NOT NULL,
    question     TEXT    NOT NULL,
    answer       TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS quizzes (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    material_id     TEXT    NOT NULL REFERENCES study_materials(id) ON DELETE CASCADE,
    user_id         TEXT    NOT NULL,
    position        INTEGER NOT NULL,
    question        TEXT    NOT NULL,
    options         TEXT    NOT NULL,
    correct_answer  TEXT    NOT NULL,
    difficulty      TEXT    NOT NULL,
    explanation     TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS hashtags (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    material_id  TEXT    NOT NULL REFERENCES study_materials(id) ON DELETE CASCADE,
    position     INTEGER NOT NULL,
    tag          TEXT    NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_materials_url ON study_materials(source_url);",
    "CREATE INDEX IF NOT EXISTS idx_materials_user ON study_materials(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_flashcards_material ON flashcards(material_id);",
    "CREATE INDEX IF NOT EXISTS idx_flashcards_user ON flashcards(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_quizzes_material ON quizzes(material_id);",
    "CREATE INDEX IF NOT EXISTS idx_quizzes_user ON quizzes(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_hashtags_material ON hashtags(material_id);",
]

_SELECT_LATEST_BY_URL_SQL = """\
SELECT id, user_id, source_url, summary, difficulty_level,
       estimated_study_time, thumbnail, created_at
FROM study_materials
WHERE source_url = ?
ORDER BY created_at DESC, rowid DESC
LIMIT 1;
"""

_SELECT_USER_QUIZZES_SQL = """\
SELECT q.id, q.material_id, q.question, q.options, q.correct_answer,
       q.difficulty, q.explanation, m.source_url, m.thumbnail, m.created_at
FROM quizzes q
JOIN study_materials m ON m.id = q.material_id
WHERE q.user_id = ?
ORDER BY m.created_at DESC, m.rowid DESC, q.position ASC;
"""


class SQLiteStudyMaterialStore(IStudyMaterialStore):
    """SQLite-backed study material persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                for table_sql in _CREATE_TABLES_SQL:
                    await db.execute(table_sql)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise self._error("initialize", exc) from exc
        logger.info("study_db_initialized", path=str(self._db_path))

    async def store(
        self,
        user_id: str,
        source_url: str,
        document: StudyDocument,
        thumbnail: str | None = None,
    ) -> str:
        """Insert *document* and its child rows in one transaction."""
        material_id = uuid.uuid4().hex
        created_at = datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                # Parent row first; the child inserts share the same commit, so
                # a failure leaves no half-written material behind.
                await db.execute(
                    "INSERT INTO study_materials (id, user_id, source_url, summary, "
                    "difficulty_level, estimated_study_time, thumbnail, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        material_id,
                        user_id,
                        source_url,
                        json.dumps(document.summary),  # list of points as JSON text
                        document.difficulty_level.value if document.difficulty_level else None,
                        document.estimated_study_time,
                        thumbnail,
                        created_at,
                    ),
                )
                await db.executemany(
                    "INSERT INTO flashcards (material_id, user_id, position, question, answer) "
                    "VALUES (?, ?, ?, ?, ?)",
                    [
                        (material_id, user_id, pos, card.question, card.answer)
                        for pos, card in enumerate(document.flashcards)
                    ],
                )
                await db.executemany(
                    "INSERT INTO quizzes (material_id, user_id, position, question, options, "
                    "correct_answer, difficulty, explanation) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    [
                        (
                            material_id,
                            user_id,
                            pos,
                            q.question,
                            json.dumps(q.options),  # options keep their order
                            q.correct_answer,
                            q.difficulty.value,
                            q.explanation,
                        )
                        for pos, q in enumerate(document.quiz)
                    ],
                )
                await db.executemany(
                    "INSERT INTO hashtags (material_id, position, tag) VALUES (?, ?, ?)",
                    [(material_id, pos, tag.lower()) for pos, tag in enumerate(document.hashtags)],
                )
                await db.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise self._error("store", exc) from exc

        logger.info(
            "study_material_stored",
            material_id=material_id,
            user_id=user_id,
            source_url=source_url,
            flashcards=len(document.flashcards),
            quiz_questions=len(document.quiz),
        )
        return material_id

    async def find_by_url(self, source_url: str) -> StoredStudyMaterial | None:
        """Return the newest stored material for *source_url*, rebuilt in full."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(_SELECT_LATEST_BY_URL_SQL, (source_url,))
                row = await cursor.fetchone()
                if row is None:
                    return None
                material = dict(row)
                material_id = material["id"]

                cursor = await db.execute(
                    "SELECT question, answer FROM flashcards "
                    "WHERE material_id = ? ORDER BY position",
                    (material_id,),
                )
                flashcard_rows = await cursor.fetchall()
                cursor = await db.execute(
                    "SELECT question, options, correct_answer, difficulty, explanation "
                    "FROM quizzes WHERE material_id = ? ORDER BY position",
                    (material_id,),
                )
                quiz_rows = await cursor.fetchall()
                cursor = await db.execute(
                    "SELECT tag FROM hashtags WHERE material_id = ? ORDER BY position",
                    (material_id,),
                )
                tag_rows = await cursor.fetchall()
        except (aiosqlite.Error, OSError) as exc:
            raise self._error("find_by_url", exc) from exc

        document = StudyDocument(
            summary=json.loads(material["summary"]),
            flashcards=[Flashcard(question=r["question"], answer=r["answer"]) for r in flashcard_rows],
            quiz=[
                QuizQuestion(
                    question=r["question"],
                    options=json.loads(r["options"]),
                    correct_answer=r["correct_answer"],
                    difficulty=r["difficulty"],
                    explanation=r["explanation"],
                )
                for r in quiz_rows
            ],
            hashtags=[r["tag"] for r in tag_rows],
            difficulty_level=material["difficulty_level"],
            estimated_study_time=material["estimated_study_time"],
        )
        return StoredStudyMaterial(
            material_id=material_id,
            user_id=material["user_id"],
            source_url=material["source_url"],
            document=document,
            thumbnail=material["thumbnail"],
            created_at=datetime.fromisoformat(material["created_at"]),
        )

    async def list_quizzes(self, user_id: str) -> list[dict[str, Any]]:
        """Return the user's quiz questions with source info, newest material first."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(_SELECT_USER_QUIZZES_SQL, (user_id,))
                rows = await cursor.fetchall()
        except (aiosqlite.Error, OSError) as exc:
            raise self._error("list_quizzes", exc) from exc

        quizzes = []
        for row in rows:
            r = dict(row)
            quizzes.append(
                {
                    "id": r["id"],
                    "material_id": r["material_id"],
                    "question": r["question"],
                    "options": json.loads(r["options"]),
                    "correctAnswer": r["correct_answer"],
                    "difficulty": r["difficulty"],
                    "explanation": r["explanation"],
                    "source_url": r["source_url"],
                    "thumbnail": r["thumbnail"],
                    "created_at": r["created_at"],
                }
            )
        return quizzes

    async def get_user_stats(self, user_id: str) -> dict[str, int]:
        """Return flashcard and quiz question counts for *user_id*."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                # Child rows carry user_id directly.
                cursor = await db.execute(
                    "SELECT COUNT(*) FROM flashcards WHERE user_id = ?", (user_id,)
                )
                (flashcards_count,) = await cursor.fetchone()
                cursor = await db.execute(
                    "SELECT COUNT(*) FROM quizzes WHERE user_id = ?", (user_id,)
                )
                (quizzes_count,) = await cursor.fetchone()
        except (aiosqlite.Error, OSError) as exc:
            raise self._error("get_user_stats", exc) from exc
        return {"flashcards_count": flashcards_count, "quizzes_count": quizzes_count}

    def get_provider_name(self) -> str:
        return "sqlite_study_store"

    def _error(self, operation: str, exc: Exception) -> PersistenceError:
        logger.error("study_store_failed", operation=operation, error=str(exc))
        return PersistenceError(
            message=f"{operation} failed: {exc}",
            provider_name=self.get_provider_name(),
        )
