"""Authoring Engine - Criacao e publicacao de quizzes pelo professor."""

from datetime import datetime
from typing import Optional

from core.config import AssessmentConfig, get_config
from core.exceptions import NotFoundError, QuizHasAttemptsError, ValidationError
from core.logger import get_logger

from ..models.schemas import Question, Quiz, as_utc, utc_now
from ..storage.base import AssessmentStore
from .grading_engine import validate_question

logger = get_logger("authoring")


class QuizAuthoringService:
    """Gerencia o conteudo autorado (quizzes, questoes e alternativas).

    Regras:
        - Titulo unico por curso
        - Nota minima padrao vinda da configuracao
        - Questoes validadas ao serem adicionadas e novamente ao publicar
        - Quiz com tentativas nao pode ser removido nem ter questoes alteradas

    Example:
        >>> authoring = QuizAuthoringService(store)
        >>> quiz = authoring.create_quiz("curso-1", "Modulo 1")
        >>> authoring.add_question(quiz.id, question)
        >>> authoring.publish_quiz(quiz.id)
    """

    def __init__(self, store: AssessmentStore, config: Optional[AssessmentConfig] = None) -> None:
        self.store = store
        self.config = config or get_config()

    def get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self.store.load_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz nao encontrado", {"quiz_id": quiz_id})
        return quiz

    def list_quizzes(
        self, course_id: Optional[str] = None, published_only: bool = False
    ) -> list[Quiz]:
        return self.store.find_quizzes(course_id=course_id, published=True if published_only else None)

    def list_available_quizzes(self, course_id: str, now: Optional[datetime] = None) -> list[Quiz]:
        """Quizzes publicados do curso cuja janela inclui `now` (padrao: agora)."""
        moment = as_utc(now) if now is not None else utc_now()
        return [
            quiz
            for quiz in self.store.find_quizzes(course_id=course_id, published=True)
            if quiz.is_available_at(moment)
        ]

    def _ensure_unique_title(self, course_id: str, title: str, quiz_id: Optional[str] = None) -> None:
        for existing in self.store.find_quizzes(course_id=course_id):
            if existing.title == title and existing.id != quiz_id:
                raise ValidationError(
                    "Ja existe quiz com este titulo no curso",
                    {"course_id": course_id, "title": title},
                )

    def _ensure_no_attempts(self, quiz_id: str, action: str) -> None:
        attempts = self.store.count_attempts(quiz_id)
        if attempts > 0:
            raise QuizHasAttemptsError(
                f"Quiz com tentativas registradas nao permite {action}",
                {"quiz_id": quiz_id, "attempts": attempts},
            )

    def create_quiz(
        self,
        course_id: str,
        title: str,
        description: str = "",
        time_limit_minutes: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        passing_score: Optional[float] = None,
        randomize_questions: bool = False,
    ) -> Quiz:
        """Cria quiz nao publicado e sem questoes.

        Raises:
            ValidationError: Titulo repetido no curso ou janela invalida
        """
        self._ensure_unique_title(course_id, title)

        quiz = Quiz(
            course_id=course_id,
            title=title,
            description=description,
            time_limit_minutes=time_limit_minutes,
            start_date=start_date,
            end_date=end_date,
            passing_score=(
                self.config.default_passing_score if passing_score is None else passing_score
            ),
            randomize_questions=randomize_questions,
        )
        if quiz.start_date and quiz.end_date and quiz.end_date < quiz.start_date:
            raise ValidationError(
                "Data final anterior a data inicial",
                {"start_date": quiz.start_date.isoformat(), "end_date": quiz.end_date.isoformat()},
            )

        self.store.save_quiz(quiz)
        logger.info("Quiz criado", quiz_id=quiz.id, course_id=course_id, title=title)
        return quiz

    def add_question(self, quiz_id: str, question: Question) -> Question:
        """Valida e anexa questao ao quiz.

        Sem `order_index` explicito, a questao vai para o fim do quiz; o mesmo
        vale para as alternativas dentro da questao.

        Raises:
            ValidationError: Questao degenerada ou id repetido
            QuizHasAttemptsError: Quiz ja possui tentativas
        """
        quiz = self.get_quiz(quiz_id)
        self._ensure_no_attempts(quiz_id, "alterar questoes")
        if quiz.get_question(question.id) is not None:
            raise ValidationError(
                "Questao ja existe no quiz", {"quiz_id": quiz_id, "question_id": question.id}
            )

        validate_question(question)

        options = [
            option.model_copy(
                update={
                    "question_id": question.id,
                    "order_index": (
                        option.order_index if "order_index" in option.model_fields_set else index
                    ),
                }
            )
            for index, option in enumerate(question.options)
        ]
        order_index = (
            question.order_index
            if "order_index" in question.model_fields_set
            else len(quiz.questions)
        )
        attached = question.model_copy(
            update={"quiz_id": quiz_id, "order_index": order_index, "options": options}
        )

        self.store.save_quiz(quiz.model_copy(update={"questions": [*quiz.questions, attached]}))
        logger.info(
            "Questao adicionada",
            quiz_id=quiz_id,
            question_id=attached.id,
            type=attached.type.value,
            points=attached.points,
        )
        return attached

    def remove_question(self, quiz_id: str, question_id: str) -> Quiz:
        quiz = self.get_quiz(quiz_id)
        if quiz.get_question(question_id) is None:
            raise NotFoundError(
                "Questao nao encontrada", {"quiz_id": quiz_id, "question_id": question_id}
            )
        self._ensure_no_attempts(quiz_id, "alterar questoes")

        updated = quiz.model_copy(
            update={"questions": [q for q in quiz.questions if q.id != question_id]}
        )
        self.store.save_quiz(updated)
        logger.info("Questao removida", quiz_id=quiz_id, question_id=question_id)
        return updated

    def publish_quiz(self, quiz_id: str) -> Quiz:
        """Publica o quiz para os alunos.

        Raises:
            ValidationError: Quiz sem questoes ou com questao invalida
        """
        quiz = self.get_quiz(quiz_id)
        if not quiz.questions:
            raise ValidationError("Quiz precisa de ao menos uma questao", {"quiz_id": quiz_id})
        for question in quiz.questions:
            validate_question(question)

        published = quiz.model_copy(update={"published": True})
        self.store.save_quiz(published)
        logger.info(
            "Quiz publicado",
            quiz_id=quiz_id,
            questions=len(quiz.questions),
            total_possible_score=quiz.total_possible_score,
        )
        return published

    def unpublish_quiz(self, quiz_id: str) -> Quiz:
        quiz = self.get_quiz(quiz_id)
        unpublished = quiz.model_copy(update={"published": False})
        self.store.save_quiz(unpublished)
        logger.info("Quiz despublicado", quiz_id=quiz_id)
        return unpublished

    def delete_quiz(self, quiz_id: str) -> None:
        """Remove quiz sem historico.

        Raises:
            QuizHasAttemptsError: Existem tentativas (historico e auditoria)
        """
        self.get_quiz(quiz_id)
        self._ensure_no_attempts(quiz_id, "remocao")
        self.store.delete_quiz(quiz_id)
        logger.info("Quiz removido", quiz_id=quiz_id)
