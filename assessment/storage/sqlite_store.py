"""SQLite Store - Persistencia em SQLite com unicidade garantida pelo banco.

A regra "no maximo uma tentativa IN_PROGRESS por (quiz, aluno)" e um indice
unico parcial; duas chamadas concorrentes de `create_attempt` resultam em um
INSERT aceito e um `IntegrityError`, convertido em `AlreadyInProgressError`.
Gravacoes sao um UPDATE condicionado a coluna `version` (e ao status, quando
pedido); zero linhas afetadas indica que outra operacao gravou antes.

Cada operacao abre a propria conexao, entao a mesma instancia pode ser usada
por varias threads. Requer caminho de arquivo (":memory:" nao persiste entre
conexoes).
"""

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Optional, Union

from core.exceptions import (
    AlreadyInProgressError,
    AttemptNotActiveError,
    ConcurrentUpdateError,
    NotFoundError,
)
from core.logger import get_logger

from ..models.enums import AttemptStatus
from ..models.schemas import Quiz, QuizAttempt
from .base import AssessmentStore

logger = get_logger("sqlite_store")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS quizzes (
    id TEXT PRIMARY KEY,
    course_id TEXT NOT NULL,
    title TEXT NOT NULL,
    published INTEGER NOT NULL,
    payload TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS quiz_attempts (
    id TEXT PRIMARY KEY,
    quiz_id TEXT NOT NULL,
    student_id TEXT NOT NULL,
    status TEXT NOT NULL,
    started_at TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 0,
    payload TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_quiz_attempts_quiz ON quiz_attempts (quiz_id, status);

CREATE UNIQUE INDEX IF NOT EXISTS ux_quiz_attempts_active
    ON quiz_attempts (quiz_id, student_id)
    WHERE status = 'in_progress';
"""


class SQLiteAssessmentStore(AssessmentStore):
    """Store SQLite: entidades serializadas em JSON + colunas de consulta.

    Example:
        >>> store = SQLiteAssessmentStore(Path("data/assessment.db"))
        >>> store.create_attempt(attempt)
    """

    def __init__(self, db_path: Union[str, Path], timeout: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with closing(self._connect()) as conn:
            conn.executescript(_SCHEMA)
            conn.commit()
        logger.debug("Banco de avaliacoes inicializado", db_path=str(self.db_path))

    # -------------------------------------------------------------------------
    # Quizzes
    # -------------------------------------------------------------------------

    def load_quiz(self, quiz_id: str) -> Optional[Quiz]:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT payload FROM quizzes WHERE id = ?", (quiz_id,)).fetchone()
        return Quiz.model_validate_json(row["payload"]) if row else None

    def save_quiz(self, quiz: Quiz) -> Quiz:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO quizzes (id, course_id, title, published, payload)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    course_id = excluded.course_id,
                    title = excluded.title,
                    published = excluded.published,
                    payload = excluded.payload
                """,
                (quiz.id, quiz.course_id, quiz.title, int(quiz.published), quiz.model_dump_json()),
            )
        return quiz

    def delete_quiz(self, quiz_id: str) -> bool:
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute("DELETE FROM quizzes WHERE id = ?", (quiz_id,))
            return cursor.rowcount > 0

    def find_quizzes(
        self, course_id: Optional[str] = None, published: Optional[bool] = None
    ) -> list[Quiz]:
        query = "SELECT payload FROM quizzes WHERE 1 = 1"
        params: list = []
        if course_id is not None:
            query += " AND course_id = ?"
            params.append(course_id)
        if published is not None:
            query += " AND published = ?"
            params.append(int(published))

        with closing(self._connect()) as conn:
            rows = conn.execute(query + " ORDER BY title", params).fetchall()
        return [Quiz.model_validate_json(row["payload"]) for row in rows]

    # -------------------------------------------------------------------------
    # Tentativas
    # -------------------------------------------------------------------------

    def load_attempt(self, attempt_id: str) -> Optional[QuizAttempt]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT payload FROM quiz_attempts WHERE id = ?", (attempt_id,)
            ).fetchone()
        return QuizAttempt.model_validate_json(row["payload"]) if row else None

    def find_active_attempt(self, quiz_id: str, student_id: str) -> Optional[QuizAttempt]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                """
                SELECT payload FROM quiz_attempts
                WHERE quiz_id = ? AND student_id = ? AND status = ?
                """,
                (quiz_id, student_id, AttemptStatus.IN_PROGRESS.value),
            ).fetchone()
        return QuizAttempt.model_validate_json(row["payload"]) if row else None

    def create_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    """
                    INSERT INTO quiz_attempts
                        (id, quiz_id, student_id, status, started_at, version, payload)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        attempt.id,
                        attempt.quiz_id,
                        attempt.student_id,
                        attempt.status.value,
                        attempt.started_at.isoformat(),
                        attempt.version,
                        attempt.model_dump_json(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise AlreadyInProgressError(
                "Aluno ja possui tentativa em andamento para este quiz",
                {"quiz_id": attempt.quiz_id, "student_id": attempt.student_id},
            ) from e
        return attempt

    def save_attempt(
        self, attempt: QuizAttempt, expected_status: Optional[AttemptStatus] = None
    ) -> QuizAttempt:
        saved = attempt.model_copy(update={"version": attempt.version + 1})
        query = """
            UPDATE quiz_attempts SET status = ?, version = ?, payload = ?
            WHERE id = ? AND version = ?
        """
        params: list = [
            saved.status.value,
            saved.version,
            saved.model_dump_json(),
            attempt.id,
            attempt.version,
        ]
        if expected_status is not None:
            query += " AND status = ?"
            params.append(expected_status.value)

        with closing(self._connect()) as conn, conn:
            cursor = conn.execute(query, params)
            if cursor.rowcount == 1:
                return saved

            row = conn.execute(
                "SELECT status, version FROM quiz_attempts WHERE id = ?", (attempt.id,)
            ).fetchone()

        if row is None:
            raise NotFoundError("Tentativa nao encontrada", {"attempt_id": attempt.id})
        if expected_status is not None and row["status"] != expected_status.value:
            raise AttemptNotActiveError(
                "Tentativa foi alterada por outra operacao",
                {"attempt_id": attempt.id, "status": row["status"]},
            )
        raise ConcurrentUpdateError(
            "Tentativa gravada por outra operacao",
            {"attempt_id": attempt.id, "version": row["version"]},
        )

    def find_attempts(
        self,
        quiz_id: Optional[str] = None,
        student_id: Optional[str] = None,
        status: Optional[AttemptStatus] = None,
    ) -> list[QuizAttempt]:
        query = "SELECT payload FROM quiz_attempts WHERE 1 = 1"
        params: list = []
        if quiz_id is not None:
            query += " AND quiz_id = ?"
            params.append(quiz_id)
        if student_id is not None:
            query += " AND student_id = ?"
            params.append(student_id)
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)

        with closing(self._connect()) as conn:
            rows = conn.execute(query + " ORDER BY started_at", params).fetchall()
        return [QuizAttempt.model_validate_json(row["payload"]) for row in rows]

    def count_attempts(self, quiz_id: str) -> int:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM quiz_attempts WHERE quiz_id = ?", (quiz_id,)
            ).fetchone()
        return int(row["total"])
