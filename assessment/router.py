"""Assessment Router - Endpoints FastAPI do motor de avaliacao.

Camada fina: delega aos servicos de `app_state` e converte `AssessmentError`
em `HTTPException` com o payload serializado da excecao.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

import app_state
from core.exceptions import AssessmentError
from core.logger import get_logger

from .engine.analytics_engine import QuizAnalyticsAggregator
from .engine.attempt_engine import AttemptLifecycleService
from .engine.authoring_engine import QuizAuthoringService
from .models.schemas import (
    AttemptReview,
    CreateQuizRequest,
    GradeAnswerRequest,
    InProgressAttemptView,
    Question,
    Quiz,
    QuizAnalytics,
    QuizAttempt,
    StartAttemptRequest,
    StudentAnswer,
    StudentQuizSummary,
    SubmitAnswerRequest,
)

logger = get_logger("router")

router = APIRouter(prefix="/assessment", tags=["Assessment"])


# =============================================================================
# DEPENDENCY INJECTION
# =============================================================================


def get_attempt_service() -> AttemptLifecycleService:
    """Dependency para obter o servico de tentativas."""
    return app_state.get_attempt_service()


def get_analytics() -> QuizAnalyticsAggregator:
    """Dependency para obter o agregador de analytics."""
    return app_state.get_analytics()


def get_authoring() -> QuizAuthoringService:
    """Dependency para obter o servico de autoria."""
    return app_state.get_authoring()


def _to_http(error: AssessmentError) -> HTTPException:
    logger.info("Requisicao rejeitada", error=error.error_code, message=error.message)
    return HTTPException(status_code=error.status_code, detail=error.to_dict())


# =============================================================================
# AUTORIA
# =============================================================================


@router.post("/quizzes", response_model=Quiz, status_code=201)
def create_quiz(request: CreateQuizRequest, authoring: QuizAuthoringService = Depends(get_authoring)):
    """Cria quiz nao publicado."""
    try:
        return authoring.create_quiz(**request.model_dump())
    except AssessmentError as e:
        raise _to_http(e) from e


@router.get("/quizzes", response_model=list[Quiz])
def list_quizzes(
    course_id: Optional[str] = None,
    published_only: bool = False,
    authoring: QuizAuthoringService = Depends(get_authoring),
):
    """Lista quizzes, opcionalmente filtrando por curso e publicacao."""
    return authoring.list_quizzes(course_id=course_id, published_only=published_only)


@router.get("/courses/{course_id}/available-quizzes", response_model=list[Quiz])
def list_available_quizzes(
    course_id: str, authoring: QuizAuthoringService = Depends(get_authoring)
):
    """Quizzes publicados do curso dentro da janela de disponibilidade."""
    return authoring.list_available_quizzes(course_id)


@router.get("/quizzes/{quiz_id}", response_model=Quiz)
def get_quiz(quiz_id: str, authoring: QuizAuthoringService = Depends(get_authoring)):
    try:
        return authoring.get_quiz(quiz_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.post("/quizzes/{quiz_id}/questions", response_model=Question, status_code=201)
def add_question(
    quiz_id: str, question: Question, authoring: QuizAuthoringService = Depends(get_authoring)
):
    """Adiciona questao validada ao quiz."""
    try:
        return authoring.add_question(quiz_id, question)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.delete("/quizzes/{quiz_id}/questions/{question_id}", response_model=Quiz)
def remove_question(
    quiz_id: str, question_id: str, authoring: QuizAuthoringService = Depends(get_authoring)
):
    try:
        return authoring.remove_question(quiz_id, question_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.post("/quizzes/{quiz_id}/publish", response_model=Quiz)
def publish_quiz(quiz_id: str, authoring: QuizAuthoringService = Depends(get_authoring)):
    try:
        return authoring.publish_quiz(quiz_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.post("/quizzes/{quiz_id}/unpublish", response_model=Quiz)
def unpublish_quiz(quiz_id: str, authoring: QuizAuthoringService = Depends(get_authoring)):
    try:
        return authoring.unpublish_quiz(quiz_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.delete("/quizzes/{quiz_id}", status_code=204)
def delete_quiz(quiz_id: str, authoring: QuizAuthoringService = Depends(get_authoring)):
    """Remove quiz sem tentativas (409 se houver historico)."""
    try:
        authoring.delete_quiz(quiz_id)
    except AssessmentError as e:
        raise _to_http(e) from e


# =============================================================================
# TENTATIVAS
# =============================================================================


@router.post("/quizzes/{quiz_id}/attempts", response_model=QuizAttempt, status_code=201)
def start_attempt(
    quiz_id: str,
    request: StartAttemptRequest,
    service: AttemptLifecycleService = Depends(get_attempt_service),
):
    """Inicia tentativa (409 se o aluno ja tem uma em andamento)."""
    try:
        return service.start_attempt(quiz_id, request.student_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.post("/attempts/expire-overdue")
def expire_overdue_attempts(service: AttemptLifecycleService = Depends(get_attempt_service)):
    """Ponto de entrada do agendador: expira tentativas com prazo vencido."""
    expired = service.expire_overdue_attempts()
    return {"expired": len(expired), "attempt_ids": [attempt.id for attempt in expired]}


@router.get("/attempts", response_model=list[QuizAttempt])
def list_attempts(
    quiz_id: Optional[str] = None,
    student_id: Optional[str] = None,
    service: AttemptLifecycleService = Depends(get_attempt_service),
):
    """Historico de tentativas filtrado por quiz e/ou aluno."""
    try:
        return service.list_attempts(quiz_id=quiz_id, student_id=student_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.get("/attempts/{attempt_id}", response_model=QuizAttempt)
def get_attempt(attempt_id: str, service: AttemptLifecycleService = Depends(get_attempt_service)):
    try:
        return service.get_attempt(attempt_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.get("/attempts/{attempt_id}/view", response_model=InProgressAttemptView)
def get_attempt_view(
    attempt_id: str, service: AttemptLifecycleService = Depends(get_attempt_service)
):
    """Questoes da tentativa em andamento, sem gabarito."""
    try:
        return service.get_attempt_view(attempt_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.get("/attempts/{attempt_id}/review", response_model=AttemptReview)
def get_attempt_review(
    attempt_id: str, service: AttemptLifecycleService = Depends(get_attempt_service)
):
    """Revisao da tentativa pontuada, com gabarito e feedback."""
    try:
        return service.get_attempt_review(attempt_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.put("/attempts/{attempt_id}/answers/{question_id}", response_model=StudentAnswer)
def submit_answer(
    attempt_id: str,
    question_id: str,
    request: SubmitAnswerRequest,
    service: AttemptLifecycleService = Depends(get_attempt_service),
):
    """Registra ou revisa resposta; a correcao acontece ao finalizar."""
    try:
        return service.submit_answer(
            attempt_id,
            question_id,
            selected_option_ids=request.selected_option_ids,
            text_answer=request.text_answer,
        )
    except AssessmentError as e:
        raise _to_http(e) from e


@router.post("/attempts/{attempt_id}/submit", response_model=QuizAttempt)
def finalize_attempt(
    attempt_id: str, service: AttemptLifecycleService = Depends(get_attempt_service)
):
    try:
        return service.finalize_attempt(attempt_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.post("/attempts/{attempt_id}/expire", response_model=QuizAttempt)
def expire_attempt(attempt_id: str, service: AttemptLifecycleService = Depends(get_attempt_service)):
    try:
        return service.expire_attempt(attempt_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.post("/attempts/{attempt_id}/abandon", response_model=QuizAttempt)
def abandon_attempt(
    attempt_id: str, service: AttemptLifecycleService = Depends(get_attempt_service)
):
    try:
        return service.abandon_attempt(attempt_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.post("/attempts/{attempt_id}/answers/{question_id}/grade", response_model=QuizAttempt)
def grade_answer(
    attempt_id: str,
    question_id: str,
    request: GradeAnswerRequest,
    service: AttemptLifecycleService = Depends(get_attempt_service),
):
    """Correcao manual de resposta dissertativa."""
    try:
        return service.grade_answer(
            attempt_id, question_id, request.score, request.instructor_feedback
        )
    except AssessmentError as e:
        raise _to_http(e) from e


# =============================================================================
# ANALYTICS
# =============================================================================


@router.get("/quizzes/{quiz_id}/analytics", response_model=QuizAnalytics)
def quiz_analytics(quiz_id: str, analytics: QuizAnalyticsAggregator = Depends(get_analytics)):
    try:
        return analytics.generate_quiz_analytics(quiz_id)
    except AssessmentError as e:
        raise _to_http(e) from e


@router.get("/quizzes/{quiz_id}/students/{student_id}", response_model=StudentQuizSummary)
def student_summary(
    quiz_id: str, student_id: str, analytics: QuizAnalyticsAggregator = Depends(get_analytics)
):
    try:
        return analytics.student_summary(quiz_id, student_id)
    except AssessmentError as e:
        raise _to_http(e) from e
