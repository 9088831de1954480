"""Attempt Lifecycle Service - Maquina de estados das tentativas.

Estados:
    IN_PROGRESS -> COMPLETED   (finalize_attempt)
    IN_PROGRESS -> TIMED_OUT   (expire_attempt, acionado pelo agendador)
    IN_PROGRESS -> ABANDONED   (abandon_attempt)

Estados terminais sao permanentes. Toda gravacao e compare-and-set na versao
lida (e no status, nas transicoes): correcao e mudanca de estado sao
confirmadas juntas, e uma segunda finalizacao falha com AttemptNotActiveError.
Quando outra operacao grava a tentativa entre a leitura e a escrita, a
operacao e refeita sobre o estado novo; respostas registradas em paralelo
nunca se sobrescrevem.
"""

import random
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Optional, TypeVar

from core.config import AssessmentConfig, get_config
from core.exceptions import (
    AttemptNotActiveError,
    ConcurrentUpdateError,
    InvalidQuestionError,
    NotFoundError,
    QuizUnavailableError,
    ValidationError,
)
from core.logger import get_logger

from ..models.enums import AttemptStatus
from ..models.schemas import (
    AnswerReview,
    AttemptOptionView,
    AttemptQuestionView,
    AttemptReview,
    GradePosted,
    InProgressAttemptView,
    Question,
    Quiz,
    QuizAttempt,
    ReviewOptionView,
    StudentAnswer,
    as_utc,
    utc_now,
)
from ..storage.base import AssessmentStore
from .events import GradeEventPublisher
from .grading_engine import apply_grade, grade, percentage_of, total_score

logger = get_logger("attempts")

T = TypeVar("T")


class AttemptLifecycleService:
    """Orquestra inicio, respostas, finalizacao, expiracao e abandono.

    Nao guarda estado mutavel proprio: tudo vive no store. Pode ser
    compartilhado entre threads de atendimento.

    Args:
        store: Repositorio de quizzes e tentativas
        publisher: Destino dos eventos GradePosted
        config: Configuracao (padrao: get_config())
        clock: Fonte de "agora" (UTC); injetavel para testes

    Example:
        >>> service = AttemptLifecycleService(MemoryAssessmentStore())
        >>> attempt = service.start_attempt("quiz-1", "aluno-1")
        >>> service.submit_answer(attempt.id, "q1", selected_option_ids=["a"])
        >>> service.finalize_attempt(attempt.id).percentage_score
    """

    def __init__(
        self,
        store: AssessmentStore,
        publisher: Optional[GradeEventPublisher] = None,
        config: Optional[AssessmentConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.publisher = publisher or GradeEventPublisher()
        self.config = config or get_config()
        self._clock = clock or utc_now

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def _get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self.store.load_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz nao encontrado", {"quiz_id": quiz_id})
        return quiz

    def get_attempt(self, attempt_id: str) -> QuizAttempt:
        """Carrega tentativa ou falha com NotFoundError."""
        attempt = self.store.load_attempt(attempt_id)
        if attempt is None:
            raise NotFoundError("Tentativa nao encontrada", {"attempt_id": attempt_id})
        return attempt

    def _require_active(self, attempt: QuizAttempt) -> None:
        if attempt.status != AttemptStatus.IN_PROGRESS:
            raise AttemptNotActiveError(
                "Tentativa nao esta em andamento",
                {"attempt_id": attempt.id, "status": attempt.status.value},
            )

    def _get_question(self, quiz: Quiz, attempt: QuizAttempt, question_id: str) -> Question:
        question = quiz.get_question(question_id)
        if question is None:
            raise InvalidQuestionError(
                "Questao nao pertence ao quiz desta tentativa",
                {"attempt_id": attempt.id, "quiz_id": quiz.id, "question_id": question_id},
            )
        return question

    def _score(self, quiz: Quiz, answers: Iterable[StudentAnswer]) -> dict:
        """Score e percentual arredondados; aprovacao pelo percentual exato."""
        precision = self.config.score_precision
        raw_score = total_score(answers)
        exact_percentage = percentage_of(raw_score, quiz, precision=None)
        return {
            "score": round(raw_score, precision),
            "percentage_score": round(exact_percentage, precision),
            "passed": exact_percentage >= quiz.passing_score,
        }

    def _grade_all(self, attempt: QuizAttempt, quiz: Quiz) -> list[StudentAnswer]:
        """Corrige todas as questoes; questoes sem resposta recebem resposta em branco."""
        graded = []
        for question in quiz.ordered_questions():
            answer = attempt.get_answer(question.id) or StudentAnswer(
                attempt_id=attempt.id, question_id=question.id
            )
            graded.append(apply_grade(answer, grade(question, answer)))

        # Respostas de questoes removidas do quiz ficam no historico sem pontos
        known = {question.id for question in quiz.questions}
        for answer in attempt.answers:
            if answer.question_id not in known:
                graded.append(answer.model_copy(update={"score": 0.0, "is_correct": False}))
        return graded

    def _with_retry(self, attempt_id: str, operation: Callable[[], T]) -> T:
        """Executa leitura-alteracao-gravacao, refazendo em conflito de versao.

        Raises:
            ConcurrentUpdateError: Conflito persistiu em todas as repeticoes
        """
        retries = self.config.max_write_retries
        for _ in range(retries):
            try:
                return operation()
            except ConcurrentUpdateError:
                logger.debug("Conflito de gravacao, repetindo", attempt_id=attempt_id)
        raise ConcurrentUpdateError(
            "Tentativa alterada por outras operacoes em todas as repeticoes",
            {"attempt_id": attempt_id, "retries": retries},
        )

    def _close(self, attempt_id: str, status: AttemptStatus) -> QuizAttempt:
        def write() -> QuizAttempt:
            attempt = self.get_attempt(attempt_id)
            self._require_active(attempt)
            quiz = self._get_quiz(attempt.quiz_id)

            answers = self._grade_all(attempt, quiz)
            closed = attempt.model_copy(
                update={
                    "answers": answers,
                    "submitted_at": self._now(),
                    "status": status,
                    **self._score(quiz, answers),
                }
            )
            return self.store.save_attempt(closed, expected_status=AttemptStatus.IN_PROGRESS)

        closed = self._with_retry(attempt_id, write)
        logger.info(
            "Tentativa encerrada",
            attempt_id=closed.id,
            status=status.value,
            score=closed.score,
            percentage_score=closed.percentage_score,
            passed=closed.passed,
        )
        self._post_grade(closed)
        return closed

    def _post_grade(self, attempt: QuizAttempt) -> None:
        self.publisher.publish(
            GradePosted(
                attempt_id=attempt.id,
                student_id=attempt.student_id,
                quiz_id=attempt.quiz_id,
                percentage_score=attempt.percentage_score or 0.0,
                status=attempt.status,
            )
        )

    # -------------------------------------------------------------------------
    # Operacoes
    # -------------------------------------------------------------------------

    def start_attempt(self, quiz_id: str, student_id: str) -> QuizAttempt:
        """Inicia tentativa IN_PROGRESS.

        Raises:
            NotFoundError: Quiz inexistente
            QuizUnavailableError: Quiz nao publicado ou fora da janela
            AlreadyInProgressError: Aluno ja tem tentativa ativa neste quiz
        """
        quiz = self._get_quiz(quiz_id)
        if not quiz.published:
            raise QuizUnavailableError("Quiz nao publicado", {"quiz_id": quiz_id})

        now = self._now()
        if not quiz.is_available_at(now):
            raise QuizUnavailableError(
                "Quiz fora do periodo de disponibilidade",
                {
                    "quiz_id": quiz_id,
                    "start_date": quiz.start_date.isoformat() if quiz.start_date else None,
                    "end_date": quiz.end_date.isoformat() if quiz.end_date else None,
                },
            )

        attempt = QuizAttempt(quiz_id=quiz_id, student_id=student_id, started_at=now)
        self.store.create_attempt(attempt)

        logger.info(
            "Tentativa iniciada", attempt_id=attempt.id, quiz_id=quiz_id, student_id=student_id
        )
        return attempt

    def submit_answer(
        self,
        attempt_id: str,
        question_id: str,
        selected_option_ids: Optional[Iterable[str]] = None,
        text_answer: Optional[str] = None,
    ) -> StudentAnswer:
        """Registra ou revisa a resposta de uma questao (sem corrigir).

        Raises:
            AttemptNotActiveError: Tentativa terminal ou prazo esgotado
            InvalidQuestionError: Questao fora do quiz da tentativa
            ValidationError: Alternativa nao pertence a questao
            ConcurrentUpdateError: Conflito de gravacao persistente
        """
        option_ids = set(selected_option_ids or [])

        def write() -> StudentAnswer:
            attempt = self.get_attempt(attempt_id)
            self._require_active(attempt)
            quiz = self._get_quiz(attempt.quiz_id)
            question = self._get_question(quiz, attempt, question_id)

            now = self._now()
            deadline = quiz.deadline_for(attempt.started_at)
            if self.config.enforce_time_limit and deadline is not None and now > deadline:
                raise AttemptNotActiveError(
                    "Prazo da tentativa esgotado",
                    {"attempt_id": attempt_id, "deadline": deadline.isoformat()},
                )

            selected: set[str] = set()
            text: Optional[str] = None
            if question.type.uses_options:
                selected = option_ids
                unknown = selected - question.option_ids
                if unknown:
                    raise ValidationError(
                        "Alternativa nao pertence a questao",
                        {"question_id": question_id, "option_ids": sorted(unknown)},
                    )
            else:
                text = text_answer

            existing = attempt.get_answer(question_id)
            if existing is not None:
                answer = existing.model_copy(
                    update={"selected_option_ids": selected, "text_answer": text, "answered_at": now}
                )
                attempt.answers = [answer if a.id == existing.id else a for a in attempt.answers]
            else:
                answer = StudentAnswer(
                    attempt_id=attempt_id,
                    question_id=question_id,
                    selected_option_ids=selected,
                    text_answer=text,
                    answered_at=now,
                )
                attempt.answers.append(answer)

            self.store.save_attempt(attempt, expected_status=AttemptStatus.IN_PROGRESS)
            return answer

        answer = self._with_retry(attempt_id, write)
        logger.debug("Resposta registrada", attempt_id=attempt_id, question_id=question_id)
        return answer

    def finalize_attempt(self, attempt_id: str) -> QuizAttempt:
        """Corrige todas as respostas e conclui a tentativa (COMPLETED).

        Raises:
            AttemptNotActiveError: Tentativa ja terminal (inclusive finalizacao dupla)
        """
        return self._close(attempt_id, AttemptStatus.COMPLETED)

    def expire_attempt(self, attempt_id: str) -> QuizAttempt:
        """Encerra por tempo (TIMED_OUT) com a mesma pontuacao da finalizacao.

        Raises:
            AttemptNotActiveError: Tentativa ja terminal
        """
        return self._close(attempt_id, AttemptStatus.TIMED_OUT)

    def abandon_attempt(self, attempt_id: str) -> QuizAttempt:
        """Cancela a tentativa (ABANDONED) sem pontuacao."""

        def write() -> QuizAttempt:
            attempt = self.get_attempt(attempt_id)
            self._require_active(attempt)

            abandoned = attempt.model_copy(
                update={
                    "status": AttemptStatus.ABANDONED,
                    "submitted_at": self._now(),
                    "score": None,
                    "percentage_score": None,
                    "passed": False,
                }
            )
            return self.store.save_attempt(abandoned, expected_status=AttemptStatus.IN_PROGRESS)

        abandoned = self._with_retry(attempt_id, write)
        logger.info("Tentativa abandonada", attempt_id=attempt_id)
        return abandoned

    def grade_answer(
        self,
        attempt_id: str,
        question_id: str,
        score: float,
        instructor_feedback: Optional[str] = None,
    ) -> QuizAttempt:
        """Correcao manual de resposta dissertativa pelo professor.

        Atualiza a resposta, recalcula score/percentual/aprovacao da tentativa
        e publica novo GradePosted.

        Raises:
            ValidationError: Tentativa nao pontuada, resposta sem correcao
                manual ou nota fora de [0, pontos da questao]
        """

        def write() -> QuizAttempt:
            attempt = self.get_attempt(attempt_id)
            if attempt.status not in (AttemptStatus.COMPLETED, AttemptStatus.TIMED_OUT):
                raise ValidationError(
                    "Correcao manual exige tentativa finalizada",
                    {"attempt_id": attempt_id, "status": attempt.status.value},
                )

            quiz = self._get_quiz(attempt.quiz_id)
            question = self._get_question(quiz, attempt, question_id)
            answer = attempt.get_answer(question_id)
            if answer is None:
                raise NotFoundError(
                    "Resposta nao encontrada",
                    {"attempt_id": attempt_id, "question_id": question_id},
                )
            if not answer.manually_graded:
                raise ValidationError(
                    "Resposta nao exige correcao manual",
                    {"attempt_id": attempt_id, "question_id": question_id},
                )
            if not 0 <= score <= question.points:
                raise ValidationError(
                    "Nota fora do intervalo permitido",
                    {"score": score, "max_points": question.points},
                )

            threshold = self.config.manual_grade_correct_threshold
            graded = answer.model_copy(
                update={
                    "score": float(score),
                    "is_correct": question.points > 0 and score >= question.points * threshold,
                    "pending_review": False,
                    "instructor_feedback": instructor_feedback,
                }
            )
            answers = [graded if a.id == answer.id else a for a in attempt.answers]
            updated = attempt.model_copy(
                update={"answers": answers, **self._score(quiz, answers)}
            )
            return self.store.save_attempt(updated, expected_status=attempt.status)

        updated = self._with_retry(attempt_id, write)
        logger.info(
            "Resposta corrigida manualmente",
            attempt_id=attempt_id,
            question_id=question_id,
            score=score,
            percentage_score=updated.percentage_score,
        )
        self._post_grade(updated)
        return updated

    def get_attempt_view(self, attempt_id: str) -> InProgressAttemptView:
        """Visao da tentativa em andamento para o aluno (sem gabarito).

        A ordem embaralhada e estavel por tentativa (semente = id).
        """
        attempt = self.get_attempt(attempt_id)
        self._require_active(attempt)
        quiz = self._get_quiz(attempt.quiz_id)

        questions = quiz.ordered_questions()
        if quiz.randomize_questions:
            random.Random(attempt.id).shuffle(questions)

        views = []
        for question in questions:
            answer = attempt.get_answer(question.id)
            selected = answer.selected_option_ids if answer else set()
            views.append(
                AttemptQuestionView(
                    id=question.id,
                    text=question.text,
                    type=question.type,
                    points=question.points,
                    order_index=question.order_index,
                    options=[
                        AttemptOptionView(
                            id=option.id,
                            text=option.text,
                            order_index=option.order_index,
                            selected=option.id in selected,
                        )
                        # Respostas aceitas de SHORT_ANSWER nao sao expostas
                        for option in (question.ordered_options() if question.type.uses_options else [])
                    ],
                    text_answer=answer.text_answer if answer else None,
                )
            )

        return InProgressAttemptView(
            id=attempt.id,
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            status=attempt.status,
            started_at=attempt.started_at,
            time_limit_minutes=quiz.time_limit_minutes,
            deadline=quiz.deadline_for(attempt.started_at),
            questions=views,
        )

    def list_attempts(
        self, quiz_id: Optional[str] = None, student_id: Optional[str] = None
    ) -> list[QuizAttempt]:
        """Historico de tentativas por quiz, por aluno ou pelos dois.

        Raises:
            NotFoundError: Quiz informado nao existe
        """
        if quiz_id is not None:
            self._get_quiz(quiz_id)
        return self.store.find_attempts(quiz_id=quiz_id, student_id=student_id)

    def get_attempt_review(self, attempt_id: str) -> AttemptReview:
        """Revisao pos-correcao: resposta, pontos, feedback e gabarito por questao.

        Disponivel apenas para tentativas pontuadas (COMPLETED ou TIMED_OUT);
        durante a tentativa o gabarito nao e exposto.

        Raises:
            ValidationError: Tentativa em andamento ou abandonada
        """
        attempt = self.get_attempt(attempt_id)
        if attempt.status not in (AttemptStatus.COMPLETED, AttemptStatus.TIMED_OUT):
            raise ValidationError(
                "Revisao disponivel apenas para tentativa pontuada",
                {"attempt_id": attempt_id, "status": attempt.status.value},
            )
        quiz = self._get_quiz(attempt.quiz_id)

        reviews = []
        for question in quiz.ordered_questions():
            answer = attempt.get_answer(question.id)
            selected = answer.selected_option_ids if answer else set()
            options = question.ordered_options() if question.type.uses_options else []
            reviews.append(
                AnswerReview(
                    question_id=question.id,
                    question_text=question.text,
                    question_type=question.type,
                    points=question.points,
                    order_index=question.order_index,
                    selected_option_ids=sorted(selected),
                    text_answer=answer.text_answer if answer else None,
                    score=answer.score if answer else None,
                    is_correct=answer.is_correct if answer else False,
                    pending_review=answer.pending_review if answer else False,
                    feedback=question.feedback,
                    instructor_feedback=answer.instructor_feedback if answer else None,
                    correct_option_ids=[option.id for option in question.correct_options],
                    options=[
                        ReviewOptionView(
                            id=option.id,
                            text=option.text,
                            order_index=option.order_index,
                            is_correct=option.is_correct,
                            selected=option.id in selected,
                            feedback=option.feedback,
                        )
                        for option in options
                    ],
                )
            )

        return AttemptReview(
            id=attempt.id,
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            student_id=attempt.student_id,
            status=attempt.status,
            started_at=attempt.started_at,
            submitted_at=attempt.submitted_at,
            duration_minutes=attempt.duration_minutes(),
            score=attempt.score,
            total_possible_score=quiz.total_possible_score,
            percentage_score=attempt.percentage_score,
            passing_score=quiz.passing_score,
            passed=attempt.passed,
            answers=reviews,
        )

    def expire_overdue_attempts(self, now: Optional[datetime] = None) -> list[QuizAttempt]:
        """Varredura do agendador: expira tentativas com prazo vencido.

        Tentativas finalizadas entre a leitura e a expiracao sao ignoradas.
        """
        now = as_utc(now) if now is not None else self._now()
        quizzes: dict[str, Optional[Quiz]] = {}
        expired = []

        for attempt in self.store.find_overdue_candidates():
            if attempt.quiz_id not in quizzes:
                quizzes[attempt.quiz_id] = self.store.load_quiz(attempt.quiz_id)
            quiz = quizzes[attempt.quiz_id]
            if quiz is None:
                logger.warning("Tentativa ativa sem quiz", attempt_id=attempt.id)
                continue

            deadline = quiz.deadline_for(attempt.started_at)
            if deadline is None or now <= deadline:
                continue

            try:
                expired.append(self.expire_attempt(attempt.id))
            except AttemptNotActiveError:
                logger.info("Tentativa encerrada antes da expiracao", attempt_id=attempt.id)
            except ConcurrentUpdateError:
                # Continua IN_PROGRESS; a proxima varredura tenta de novo
                logger.warning("Expiracao adiada por conflito de gravacao", attempt_id=attempt.id)

        if expired:
            logger.info("Tentativas expiradas", count=len(expired))
        return expired
