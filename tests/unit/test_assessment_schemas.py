# =============================================================================
# TESTES - Assessment Schemas e Eventos
# =============================================================================
# Testes unitarios para modelos Pydantic, excecoes e GradeEventPublisher
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest


class TestEnums:
    """Testes para enums."""

    def test_question_types_using_options(self):
        """Verifica quais tipos respondem com alternativas."""
        from assessment.models import QuestionType

        assert QuestionType.MULTIPLE_CHOICE.uses_options
        assert QuestionType.MULTIPLE_ANSWER.uses_options
        assert QuestionType.TRUE_FALSE.uses_options
        assert not QuestionType.SHORT_ANSWER.uses_options
        assert not QuestionType.ESSAY.uses_options

    def test_terminal_statuses(self):
        """Verifica estados terminais."""
        from assessment.models import AttemptStatus

        assert not AttemptStatus.IN_PROGRESS.is_terminal
        assert AttemptStatus.COMPLETED.is_terminal
        assert AttemptStatus.TIMED_OUT.is_terminal
        assert AttemptStatus.ABANDONED.is_terminal


class TestQuizModel:
    """Testes para o modelo Quiz."""

    def test_total_possible_score(self, sample_quiz):
        """Verifica soma dos pontos calculada."""
        assert sample_quiz.total_possible_score == 22

    def test_default_passing_score(self):
        """Verifica nota minima padrao 60."""
        from assessment.models import Quiz

        assert Quiz(title="Q", course_id="c").passing_score == 60.0

    def test_passing_score_bounds(self):
        """Verifica nota minima fora de 0-100 rejeitada."""
        from pydantic import ValidationError

        from assessment.models import Quiz

        with pytest.raises(ValidationError):
            Quiz(title="Q", course_id="c", passing_score=120)

    def test_empty_title_rejected(self):
        """Verifica titulo obrigatorio."""
        from pydantic import ValidationError

        from assessment.models import Quiz

        with pytest.raises(ValidationError):
            Quiz(title="", course_id="c")

    def test_quiz_is_frozen(self, sample_quiz):
        """Verifica conteudo autorado imutavel."""
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            sample_quiz.title = "Outro"

    def test_naive_dates_become_utc(self):
        """Verifica normalizacao de datas sem fuso."""
        from assessment.models import Quiz

        quiz = Quiz(title="Q", course_id="c", start_date=datetime(2025, 1, 1, 8, 0))

        assert quiz.start_date.tzinfo == timezone.utc

    def test_availability_window(self):
        """Verifica janela com limites abertos e fechados."""
        from assessment.models import Quiz

        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        quiz = Quiz(title="Q", course_id="c", start_date=start)

        assert not quiz.is_available_at(start - timedelta(seconds=1))
        assert quiz.is_available_at(start)
        assert quiz.is_available_at(start + timedelta(days=365))

    def test_deadline(self, sample_quiz):
        """Verifica prazo = inicio + tempo limite."""
        from assessment.models import Quiz

        started = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

        assert sample_quiz.deadline_for(started) == started + timedelta(minutes=30)
        assert Quiz(title="Q", course_id="c").deadline_for(started) is None

    def test_ordered_questions(self, sample_quiz):
        """Verifica ordenacao por order_index."""
        reversed_quiz = sample_quiz.model_copy(
            update={"questions": list(reversed(sample_quiz.questions))}
        )

        assert [q.id for q in reversed_quiz.ordered_questions()][0] == "q-mc"


class TestAttemptModel:
    """Testes para QuizAttempt."""

    def test_defaults(self):
        """Verifica tentativa nova em andamento."""
        from assessment.models import AttemptStatus, QuizAttempt

        attempt = QuizAttempt(quiz_id="quiz-1", student_id="aluno-1")

        assert attempt.status == AttemptStatus.IN_PROGRESS
        assert attempt.is_in_progress
        assert attempt.passed is False
        assert attempt.score is None
        assert attempt.duration_minutes() is None

    def test_duration(self):
        """Verifica duracao em minutos."""
        from assessment.models import QuizAttempt

        started = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
        attempt = QuizAttempt(
            quiz_id="quiz-1",
            student_id="aluno-1",
            started_at=started,
            submitted_at=started + timedelta(minutes=12, seconds=30),
        )

        assert attempt.duration_minutes() == 12.5

    def test_json_round_trip_keeps_selection_set(self):
        """Verifica alternativas marcadas preservadas na serializacao."""
        from assessment.models import QuizAttempt, StudentAnswer

        attempt = QuizAttempt(quiz_id="quiz-1", student_id="aluno-1")
        attempt.answers.append(
            StudentAnswer(attempt_id=attempt.id, question_id="q", selected_option_ids={"a", "b"})
        )

        restored = QuizAttempt.model_validate_json(attempt.model_dump_json())

        assert restored.answers[0].selected_option_ids == {"a", "b"}


class TestExceptions:
    """Testes para a hierarquia de excecoes."""

    def test_to_dict(self):
        """Verifica serializacao para a API."""
        from core.exceptions import AlreadyInProgressError

        error = AlreadyInProgressError("Ja existe", {"quiz_id": "quiz-1"})

        assert error.to_dict() == {
            "error": "already_in_progress",
            "message": "Ja existe",
            "details": {"quiz_id": "quiz-1"},
        }
        assert error.status_code == 409
        assert str(error) == "Ja existe"

    def test_hierarchy(self):
        """Verifica que todas derivam de AssessmentError."""
        from core.exceptions import (
            AssessmentError,
            AttemptNotActiveError,
            ConcurrentUpdateError,
            InvalidQuestionError,
            NotFoundError,
            QuizHasAttemptsError,
            QuizUnavailableError,
            ValidationError,
        )

        for error_cls in (
            AttemptNotActiveError,
            ConcurrentUpdateError,
            InvalidQuestionError,
            NotFoundError,
            QuizHasAttemptsError,
            QuizUnavailableError,
            ValidationError,
        ):
            assert issubclass(error_cls, AssessmentError)
        assert issubclass(QuizHasAttemptsError, ValidationError)
        assert NotFoundError("x").details == {}


class TestGradeEventPublisher:
    """Testes para publicacao de GradePosted."""

    def _event(self):
        from assessment.models import AttemptStatus, GradePosted

        return GradePosted(
            attempt_id="att-1",
            student_id="aluno-1",
            quiz_id="quiz-1",
            percentage_score=80.0,
            status=AttemptStatus.COMPLETED,
        )

    def test_delivers_to_all_listeners(self):
        """Verifica entrega para todos os assinantes."""
        from assessment.engine import GradeEventPublisher

        publisher = GradeEventPublisher()
        first, second = [], []
        publisher.subscribe(first.append)
        publisher.subscribe(second.append)

        publisher.publish(self._event())

        assert len(first) == 1
        assert second[0].percentage_score == 80.0

    def test_failing_listener_does_not_stop_others(self):
        """Verifica isolamento de falha entre assinantes."""
        from assessment.engine import GradeEventPublisher

        def broken(event):
            raise RuntimeError("fora do ar")

        publisher = GradeEventPublisher()
        received = []
        publisher.subscribe(broken)
        publisher.subscribe(received.append)

        publisher.publish(self._event())

        assert len(received) == 1

    def test_unsubscribe(self):
        """Verifica remocao de assinante."""
        from assessment.engine import GradeEventPublisher

        publisher = GradeEventPublisher()
        received = []
        publisher.subscribe(received.append)
        publisher.unsubscribe(received.append)

        publisher.publish(self._event())

        assert received == []
