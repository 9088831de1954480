# =============================================================================
# CONFTEST - Fixtures compartilhadas para todos os testes
# =============================================================================
# Quiz de exemplo, stores, relogio controlavel e servicos prontos
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest


# =============================================================================
# RELOGIO
# =============================================================================


class FakeClock:
    """Relogio controlavel injetado nos servicos."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Relogio fixo em 2025-01-15 12:00 UTC."""
    return FakeClock(datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# CONFIGURACAO
# =============================================================================


@pytest.fixture
def config():
    """Configuracao padrao, independente do ambiente."""
    from core.config import AssessmentConfig

    return AssessmentConfig()


# =============================================================================
# FIXTURES DE DADOS DE TESTE
# =============================================================================


@pytest.fixture
def sample_questions():
    """Uma questao de cada tipo (total 22 pontos)."""
    from assessment.models import AnswerOption, Question, QuestionType

    return [
        Question(
            id="q-mc",
            text="Qual a capital da Franca?",
            type=QuestionType.MULTIPLE_CHOICE,
            points=2,
            order_index=0,
            quiz_id="quiz-1",
            options=[
                AnswerOption(id="mc-a", text="Paris", is_correct=True, order_index=0),
                AnswerOption(id="mc-b", text="Lyon", order_index=1),
                AnswerOption(id="mc-c", text="Nice", order_index=2),
            ],
        ),
        Question(
            id="q-ma",
            text="Quais sao numeros primos?",
            type=QuestionType.MULTIPLE_ANSWER,
            points=10,
            order_index=1,
            quiz_id="quiz-1",
            options=[
                AnswerOption(id="ma-a", text="2", is_correct=True, order_index=0),
                AnswerOption(id="ma-b", text="3", is_correct=True, order_index=1),
                AnswerOption(id="ma-c", text="4", order_index=2),
                AnswerOption(id="ma-d", text="6", order_index=3),
            ],
        ),
        Question(
            id="q-tf",
            text="A agua ferve a 100 graus ao nivel do mar.",
            type=QuestionType.TRUE_FALSE,
            points=2,
            order_index=2,
            quiz_id="quiz-1",
            options=[
                AnswerOption(id="tf-true", text="Verdadeiro", is_correct=True, order_index=0),
                AnswerOption(id="tf-false", text="Falso", order_index=1),
            ],
        ),
        Question(
            id="q-sa",
            text="Capital da Franca (por extenso)",
            type=QuestionType.SHORT_ANSWER,
            points=3,
            order_index=3,
            quiz_id="quiz-1",
            options=[AnswerOption(id="sa-paris", text="Paris", is_correct=True)],
        ),
        Question(
            id="q-essay",
            text="Explique o ciclo da agua.",
            type=QuestionType.ESSAY,
            points=5,
            order_index=4,
            quiz_id="quiz-1",
        ),
    ]


@pytest.fixture
def sample_quiz(sample_questions):
    """Quiz publicado, 30 minutos, nota minima 60."""
    from assessment.models import Quiz

    return Quiz(
        id="quiz-1",
        title="Geografia e Ciencias",
        course_id="curso-1",
        time_limit_minutes=30,
        passing_score=60.0,
        published=True,
        questions=sample_questions,
    )


# =============================================================================
# FIXTURES DE STORAGE
# =============================================================================


@pytest.fixture
def store(sample_quiz):
    """Store em memoria com o quiz de exemplo."""
    from assessment.storage import MemoryAssessmentStore

    memory_store = MemoryAssessmentStore()
    memory_store.save_quiz(sample_quiz)
    return memory_store


@pytest.fixture
def sqlite_store(sample_quiz, temp_db_path):
    """Store SQLite em arquivo temporario com o quiz de exemplo."""
    from assessment.storage import SQLiteAssessmentStore

    db_store = SQLiteAssessmentStore(temp_db_path)
    db_store.save_quiz(sample_quiz)
    return db_store


# =============================================================================
# FIXTURES DE SERVICOS
# =============================================================================


@pytest.fixture
def publisher():
    from assessment.engine import GradeEventPublisher

    return GradeEventPublisher()


@pytest.fixture
def posted_events(publisher):
    """Lista que acumula os GradePosted publicados."""
    events = []
    publisher.subscribe(events.append)
    return events


@pytest.fixture
def service(store, publisher, config, clock):
    from assessment.engine import AttemptLifecycleService

    return AttemptLifecycleService(store, publisher=publisher, config=config, clock=clock)


@pytest.fixture
def authoring(store, config):
    from assessment.engine import QuizAuthoringService

    return QuizAuthoringService(store, config=config)


@pytest.fixture
def analytics(store, config):
    from assessment.engine import QuizAnalyticsAggregator

    return QuizAnalyticsAggregator(store, config=config)


# =============================================================================
# FIXTURES DO FASTAPI
# =============================================================================


@pytest.fixture
def client(monkeypatch):
    """Cliente de teste FastAPI com servicos novos em memoria."""
    from fastapi.testclient import TestClient

    import app_state
    from core.config import reload_config

    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    reload_config()
    app_state.reset_state()

    from server import app

    with TestClient(app) as test_client:
        yield test_client

    app_state.reset_state()
