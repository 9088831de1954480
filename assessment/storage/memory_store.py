"""Memory Store - Persistencia em memoria, thread-safe."""

import threading
from typing import Optional

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

logger = get_logger("memory_store")


class MemoryAssessmentStore(AssessmentStore):
    """Store em memoria para testes e execucao local.

    Um unico lock serializa leituras e escritas, tornando a verificacao de
    tentativa ativa e a criacao uma operacao atomica.

    Example:
        >>> store = MemoryAssessmentStore()
        >>> store.save_quiz(quiz)
        >>> store.load_quiz(quiz.id).title
    """

    def __init__(self) -> None:
        self._quizzes: dict[str, Quiz] = {}
        self._attempts: dict[str, QuizAttempt] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Quizzes
    # -------------------------------------------------------------------------

    def load_quiz(self, quiz_id: str) -> Optional[Quiz]:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
            return quiz.model_copy(deep=True) if quiz else None

    def save_quiz(self, quiz: Quiz) -> Quiz:
        with self._lock:
            self._quizzes[quiz.id] = quiz.model_copy(deep=True)
        logger.debug("Quiz salvo", quiz_id=quiz.id)
        return quiz

    def delete_quiz(self, quiz_id: str) -> bool:
        with self._lock:
            return self._quizzes.pop(quiz_id, None) is not None

    def find_quizzes(
        self, course_id: Optional[str] = None, published: Optional[bool] = None
    ) -> list[Quiz]:
        with self._lock:
            return [
                quiz.model_copy(deep=True)
                for quiz in self._quizzes.values()
                if (course_id is None or quiz.course_id == course_id)
                and (published is None or quiz.published == published)
            ]

    # -------------------------------------------------------------------------
    # Tentativas
    # -------------------------------------------------------------------------

    def _active_for(self, quiz_id: str, student_id: str) -> Optional[QuizAttempt]:
        for attempt in self._attempts.values():
            if (
                attempt.quiz_id == quiz_id
                and attempt.student_id == student_id
                and attempt.status == AttemptStatus.IN_PROGRESS
            ):
                return attempt
        return None

    def load_attempt(self, attempt_id: str) -> Optional[QuizAttempt]:
        with self._lock:
            attempt = self._attempts.get(attempt_id)
            return attempt.model_copy(deep=True) if attempt else None

    def find_active_attempt(self, quiz_id: str, student_id: str) -> Optional[QuizAttempt]:
        with self._lock:
            attempt = self._active_for(quiz_id, student_id)
            return attempt.model_copy(deep=True) if attempt else None

    def create_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        with self._lock:
            if attempt.status == AttemptStatus.IN_PROGRESS:
                existing = self._active_for(attempt.quiz_id, attempt.student_id)
                if existing is not None:
                    raise AlreadyInProgressError(
                        "Aluno ja possui tentativa em andamento para este quiz",
                        {
                            "quiz_id": attempt.quiz_id,
                            "student_id": attempt.student_id,
                            "attempt_id": existing.id,
                        },
                    )
            self._attempts[attempt.id] = attempt.model_copy(deep=True)
        return attempt

    def save_attempt(
        self, attempt: QuizAttempt, expected_status: Optional[AttemptStatus] = None
    ) -> QuizAttempt:
        with self._lock:
            stored = self._attempts.get(attempt.id)
            if stored is None:
                raise NotFoundError("Tentativa nao encontrada", {"attempt_id": attempt.id})
            if expected_status is not None and stored.status != expected_status:
                raise AttemptNotActiveError(
                    "Tentativa foi alterada por outra operacao",
                    {"attempt_id": attempt.id, "status": stored.status.value},
                )
            if stored.version != attempt.version:
                raise ConcurrentUpdateError(
                    "Tentativa gravada por outra operacao",
                    {"attempt_id": attempt.id, "version": stored.version},
                )
            saved = attempt.model_copy(update={"version": attempt.version + 1}, deep=True)
            self._attempts[attempt.id] = saved
            return saved.model_copy(deep=True)

    def find_attempts(
        self,
        quiz_id: Optional[str] = None,
        student_id: Optional[str] = None,
        status: Optional[AttemptStatus] = None,
    ) -> list[QuizAttempt]:
        with self._lock:
            attempts = [
                attempt.model_copy(deep=True)
                for attempt in self._attempts.values()
                if (quiz_id is None or attempt.quiz_id == quiz_id)
                and (student_id is None or attempt.student_id == student_id)
                and (status is None or attempt.status == status)
            ]
        return sorted(attempts, key=lambda attempt: attempt.started_at)
