"""Assessment Schemas - Modelos Pydantic das entidades, requests e respostas."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import AttemptStatus, QuestionType


def new_id() -> str:
    """Gera id unico (hex de UUID4)."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normaliza datetimes ingenuos para UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# BANCO DE QUESTOES
# =============================================================================


class AnswerOption(BaseModel):
    """Alternativa de uma questao (ou resposta aceita em SHORT_ANSWER)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id, description="ID da alternativa")
    text: str = Field(..., description="Texto da alternativa")
    is_correct: bool = Field(default=False, description="Se a alternativa e correta")
    feedback: str = Field(default="", description="Feedback exibido apos a correcao")
    order_index: int = Field(default=0, ge=0, description="Posicao na questao")
    question_id: Optional[str] = Field(default=None, description="ID da questao dona")


class Question(BaseModel):
    """Questao de um quiz com metadata de pontuacao."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id, description="ID da questao")
    text: str = Field(..., description="Enunciado")
    type: QuestionType = Field(..., description="Tipo da questao")
    points: int = Field(default=1, ge=0, description="Pontos atribuidos")
    order_index: int = Field(default=0, ge=0, description="Posicao no quiz")
    feedback: str = Field(default="", description="Feedback geral")
    quiz_id: Optional[str] = Field(default=None, description="ID do quiz dono")
    options: list[AnswerOption] = Field(
        default_factory=list, description="Alternativas (vazio para ESSAY)"
    )

    @property
    def correct_options(self) -> list[AnswerOption]:
        return [option for option in self.options if option.is_correct]

    @property
    def option_ids(self) -> set[str]:
        return {option.id for option in self.options}

    def get_option(self, option_id: str) -> Optional[AnswerOption]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def ordered_options(self) -> list[AnswerOption]:
        return sorted(self.options, key=lambda option: option.order_index)


class Quiz(BaseModel):
    """Quiz: conteudo autorado e regras de aprovacao.

    O quiz e dono de suas questoes (que sao donas das alternativas). Filhos
    guardam apenas o id do pai; nao ha referencias ciclicas.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id, description="ID do quiz")
    title: str = Field(..., min_length=1, description="Titulo")
    description: str = Field(default="", description="Descricao")
    time_limit_minutes: Optional[int] = Field(
        default=None, ge=1, description="Tempo limite (None = ilimitado)"
    )
    start_date: Optional[datetime] = Field(default=None, description="Inicio da janela")
    end_date: Optional[datetime] = Field(default=None, description="Fim da janela")
    passing_score: float = Field(default=60.0, ge=0, le=100, description="Nota minima (%)")
    randomize_questions: bool = Field(default=False, description="Embaralhar questoes")
    published: bool = Field(default=False, description="Visivel para alunos")
    course_id: str = Field(..., description="ID do curso")
    questions: list[Question] = Field(default_factory=list, description="Questoes")

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def total_possible_score(self) -> int:
        """Soma dos pontos das questoes (sempre recalculada)."""
        return sum(question.points for question in self.questions)

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def ordered_questions(self) -> list[Question]:
        return sorted(self.questions, key=lambda question: question.order_index)

    def is_available_at(self, moment: datetime) -> bool:
        """Verifica a janela [start_date, end_date]; limites nulos sao abertos."""
        moment = as_utc(moment)
        if self.start_date is not None and moment < self.start_date:
            return False
        if self.end_date is not None and moment > self.end_date:
            return False
        return True

    def deadline_for(self, started_at: datetime) -> Optional[datetime]:
        """Prazo final de uma tentativa iniciada em `started_at`."""
        if self.time_limit_minutes is None:
            return None
        return as_utc(started_at) + timedelta(minutes=self.time_limit_minutes)


# =============================================================================
# TENTATIVAS
# =============================================================================


class StudentAnswer(BaseModel):
    """Resposta de um aluno para uma questao dentro de uma tentativa."""

    id: str = Field(default_factory=new_id, description="ID da resposta")
    attempt_id: str = Field(..., description="ID da tentativa")
    question_id: str = Field(..., description="ID da questao")
    selected_option_ids: set[str] = Field(
        default_factory=set, description="Alternativas marcadas (MC/MA/TF)"
    )
    text_answer: Optional[str] = Field(default=None, description="Texto (SHORT_ANSWER/ESSAY)")
    score: Optional[float] = Field(default=None, description="Pontos obtidos")
    is_correct: bool = Field(default=False, description="Se a resposta esta correta")
    manually_graded: bool = Field(default=False, description="Exige correcao manual")
    pending_review: bool = Field(default=False, description="Aguardando o professor")
    instructor_feedback: Optional[str] = Field(default=None, description="Feedback do professor")
    answered_at: Optional[datetime] = Field(default=None, description="Ultima alteracao")


class QuizAttempt(BaseModel):
    """Execucao de um quiz por um aluno."""

    id: str = Field(default_factory=new_id, description="ID da tentativa")
    quiz_id: str = Field(..., description="ID do quiz")
    student_id: str = Field(..., description="ID do aluno")
    started_at: datetime = Field(default_factory=utc_now, description="Inicio")
    submitted_at: Optional[datetime] = Field(default=None, description="Fim (estado terminal)")
    score: Optional[float] = Field(default=None, description="Pontuacao bruta")
    percentage_score: Optional[float] = Field(default=None, description="Percentual (0-100)")
    passed: bool = Field(default=False, description="Aprovado (valido quando COMPLETED)")
    status: AttemptStatus = Field(default=AttemptStatus.IN_PROGRESS, description="Status")
    answers: list[StudentAnswer] = Field(default_factory=list, description="Respostas")
    version: int = Field(default=0, ge=0, description="Incrementado pelo store a cada gravacao")

    @field_validator("started_at", "submitted_at")
    @classmethod
    def _normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def is_in_progress(self) -> bool:
        return self.status == AttemptStatus.IN_PROGRESS

    def get_answer(self, question_id: str) -> Optional[StudentAnswer]:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None

    def duration_minutes(self) -> Optional[float]:
        if self.submitted_at is None:
            return None
        return (self.submitted_at - self.started_at).total_seconds() / 60


class GradeResult(BaseModel):
    """Resultado puro da correcao de uma resposta."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=0, description="Pontos obtidos")
    is_correct: bool = Field(..., description="Se a resposta esta correta")
    manually_graded: bool = Field(default=False, description="Exige correcao manual")


class GradePosted(BaseModel):
    """Evento emitido quando uma tentativa atinge estado terminal pontuado."""

    model_config = ConfigDict(frozen=True)

    attempt_id: str
    student_id: str
    quiz_id: str
    percentage_score: float
    status: AttemptStatus
    posted_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# REQUESTS
# =============================================================================


class CreateQuizRequest(BaseModel):
    """Request para criar quiz (nao publicado, sem questoes)."""

    course_id: str = Field(..., min_length=1, description="ID do curso")
    title: str = Field(..., min_length=1, description="Titulo unico no curso")
    description: str = Field(default="", description="Descricao")
    time_limit_minutes: Optional[int] = Field(default=None, ge=1, description="Tempo limite")
    start_date: Optional[datetime] = Field(default=None, description="Inicio da janela")
    end_date: Optional[datetime] = Field(default=None, description="Fim da janela")
    passing_score: Optional[float] = Field(
        default=None, ge=0, le=100, description="Nota minima (padrao da configuracao)"
    )
    randomize_questions: bool = Field(default=False, description="Embaralhar questoes")


class StartAttemptRequest(BaseModel):
    """Request para iniciar tentativa."""

    student_id: str = Field(..., min_length=1, description="ID do aluno")


class SubmitAnswerRequest(BaseModel):
    """Request para registrar (ou revisar) uma resposta."""

    selected_option_ids: list[str] = Field(
        default_factory=list, description="Alternativas marcadas"
    )
    text_answer: Optional[str] = Field(default=None, description="Resposta em texto")


class GradeAnswerRequest(BaseModel):
    """Request de correcao manual pelo professor."""

    score: float = Field(..., ge=0, description="Pontos atribuidos")
    instructor_feedback: Optional[str] = Field(default=None, description="Feedback")


# =============================================================================
# VISOES PARA O ALUNO
# =============================================================================


class AttemptOptionView(BaseModel):
    """Alternativa sem o gabarito, com a marcacao atual do aluno."""

    id: str
    text: str
    order_index: int
    selected: bool = False


class AttemptQuestionView(BaseModel):
    """Questao como exibida durante a tentativa."""

    id: str
    text: str
    type: QuestionType
    points: int
    order_index: int
    options: list[AttemptOptionView] = Field(default_factory=list)
    text_answer: Optional[str] = None


class InProgressAttemptView(BaseModel):
    """Tentativa em andamento com as questoes na ordem de exibicao."""

    id: str
    quiz_id: str
    quiz_title: str
    status: AttemptStatus
    started_at: datetime
    time_limit_minutes: Optional[int] = None
    deadline: Optional[datetime] = None
    questions: list[AttemptQuestionView] = Field(default_factory=list)


class ReviewOptionView(BaseModel):
    """Alternativa na revisao: gabarito, marcacao e feedback."""

    id: str
    text: str
    order_index: int
    is_correct: bool
    selected: bool = False
    feedback: str = ""


class AnswerReview(BaseModel):
    """Questao corrigida, com a resposta do aluno e as alternativas corretas."""

    question_id: str
    question_text: str
    question_type: QuestionType
    points: int
    order_index: int
    selected_option_ids: list[str] = Field(default_factory=list)
    text_answer: Optional[str] = None
    score: Optional[float] = None
    is_correct: bool = False
    pending_review: bool = False
    feedback: str = Field(default="", description="Feedback geral da questao")
    instructor_feedback: Optional[str] = None
    correct_option_ids: list[str] = Field(default_factory=list)
    options: list[ReviewOptionView] = Field(default_factory=list)


class AttemptReview(BaseModel):
    """Tentativa pontuada, questao a questao, na ordem do quiz."""

    id: str
    quiz_id: str
    quiz_title: str
    student_id: str
    status: AttemptStatus
    started_at: datetime
    submitted_at: Optional[datetime] = None
    duration_minutes: Optional[float] = None
    score: Optional[float] = None
    total_possible_score: int
    percentage_score: Optional[float] = None
    passing_score: float
    passed: bool = False
    answers: list[AnswerReview] = Field(default_factory=list)


# =============================================================================
# ANALYTICS
# =============================================================================


class OptionAnalytics(BaseModel):
    """Estatistica de selecao de uma alternativa."""

    option_id: str
    option_text: str
    is_correct: bool
    times_selected: int = Field(..., description="Vezes que foi marcada")
    selection_percentage: float = Field(..., description="times_selected / total_answers * 100")


class QuestionAnalytics(BaseModel):
    """Estatistica de acerto de uma questao."""

    question_id: str
    question_text: str
    question_type: QuestionType
    total_answers: int
    correct_answers: int
    correct_percentage: float = Field(..., description="correct / total * 100")
    difficulty: float = Field(..., description="100 - correct_percentage (50 sem dados)")
    option_analytics: list[OptionAnalytics] = Field(default_factory=list)


class ScoreBucket(BaseModel):
    """Faixa do histograma de percentuais."""

    label: str = Field(..., description="Ex.: '0-9', '90-100'")
    lower: int
    upper: int
    count: int
    percentage: float = Field(..., description="Fracao das tentativas na faixa (0-100)")


class QuizAnalytics(BaseModel):
    """Resumo agregado das tentativas concluidas de um quiz."""

    quiz_id: str
    quiz_title: str
    total_attempts: int = Field(..., description="Tentativas em qualquer status")
    completed_attempts: int
    completion_rate: float = Field(..., description="completed / total * 100")
    average_score: float = Field(..., description="Media do percentual (0 sem dados)")
    pass_rate: float = Field(..., description="passed / completed (0-1)")
    passed_count: int
    failed_count: int
    average_time_to_complete_minutes: float
    difficulty: float = Field(..., description="100 - average_score (50 sem dados)")
    score_distribution: list[ScoreBucket] = Field(default_factory=list)
    question_analytics: list[QuestionAnalytics] = Field(default_factory=list)


class StudentQuizSummary(BaseModel):
    """Historico de um aluno em um quiz."""

    quiz_id: str
    student_id: str
    attempts: int
    completed_attempts: int
    highest_score: Optional[float] = None
    passed: bool = False
    has_active_attempt: bool = False
