"""Analytics Engine - Agregacao somente leitura sobre tentativas concluidas.

Politica: apenas tentativas COMPLETED entram nas estatisticas de nota.
Tentativas TIMED_OUT tem pontuacao real, mas ficam fora das medias;
`total_attempts` e `completion_rate` consideram todos os status.

Tudo e recalculado a cada chamada; nao ha cache.
"""

from collections.abc import Sequence
from typing import Optional

from core.config import AssessmentConfig, get_config
from core.exceptions import NotFoundError
from core.logger import get_logger

from ..models.enums import AttemptStatus
from ..models.schemas import (
    OptionAnalytics,
    Question,
    QuestionAnalytics,
    QuizAnalytics,
    QuizAttempt,
    ScoreBucket,
    StudentAnswer,
    StudentQuizSummary,
)
from ..storage.base import AssessmentStore

logger = get_logger("analytics")

BUCKET_COUNT = 10
NEUTRAL_DIFFICULTY = 50.0


def _ratio(part: float, whole: float) -> float:
    return part / whole if whole else 0.0


def bucket_index(percentage: float) -> int:
    """Faixa de um percentual: 0-9 -> 0, ..., 90-100 -> 9."""
    return max(0, min(BUCKET_COUNT - 1, int(percentage // 10)))


def score_distribution(percentages: Sequence[float], precision: int = 2) -> list[ScoreBucket]:
    """Histograma de percentuais em 10 faixas; a ultima inclui 100."""
    counts = [0] * BUCKET_COUNT
    for percentage in percentages:
        counts[bucket_index(percentage)] += 1

    buckets = []
    for index, count in enumerate(counts):
        lower = index * 10
        upper = 100 if index == BUCKET_COUNT - 1 else lower + 9
        buckets.append(
            ScoreBucket(
                label=f"{lower}-{upper}",
                lower=lower,
                upper=upper,
                count=count,
                percentage=round(_ratio(count, len(percentages)) * 100, precision),
            )
        )
    return buckets


def question_difficulty(correct_percentage: float, total_answers: int) -> float:
    """Dificuldade = 100 - percentual de acerto (neutra sem respostas)."""
    if total_answers == 0:
        return NEUTRAL_DIFFICULTY
    return 100.0 - correct_percentage


def analyze_question(
    question: Question, answers: Sequence[StudentAnswer], precision: int = 2
) -> QuestionAnalytics:
    """Estatisticas de uma questao a partir das respostas dadas a ela."""
    total = len(answers)
    correct = sum(1 for answer in answers if answer.is_correct)
    correct_percentage = round(_ratio(correct, total) * 100, precision)

    option_stats = []
    if question.type.uses_options:
        for option in question.ordered_options():
            selected = sum(1 for answer in answers if option.id in answer.selected_option_ids)
            option_stats.append(
                OptionAnalytics(
                    option_id=option.id,
                    option_text=option.text,
                    is_correct=option.is_correct,
                    times_selected=selected,
                    selection_percentage=round(_ratio(selected, total) * 100, precision),
                )
            )

    return QuestionAnalytics(
        question_id=question.id,
        question_text=question.text,
        question_type=question.type,
        total_answers=total,
        correct_answers=correct,
        correct_percentage=correct_percentage,
        difficulty=round(question_difficulty(correct_percentage, total), precision),
        option_analytics=option_stats,
    )


class QuizAnalyticsAggregator:
    """Gera relatorios de desempenho de um quiz.

    Example:
        >>> aggregator = QuizAnalyticsAggregator(store)
        >>> report = aggregator.generate_quiz_analytics("quiz-1")
        >>> report.pass_rate, report.average_score
    """

    def __init__(self, store: AssessmentStore, config: Optional[AssessmentConfig] = None) -> None:
        self.store = store
        self.config = config or get_config()

    def generate_quiz_analytics(self, quiz_id: str) -> QuizAnalytics:
        """Relatorio completo do quiz.

        Raises:
            NotFoundError: Quiz inexistente
        """
        quiz = self.store.load_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz nao encontrado", {"quiz_id": quiz_id})

        precision = self.config.score_precision
        total_attempts = self.store.count_attempts(quiz_id)
        completed = self.store.find_completed_attempts(quiz_id)

        percentages = [attempt.percentage_score or 0.0 for attempt in completed]
        passed_count = sum(1 for attempt in completed if attempt.passed)
        average_score = round(_ratio(sum(percentages), len(percentages)), precision)

        durations = [
            attempt.duration_minutes()
            for attempt in completed
            if attempt.submitted_at is not None
        ]

        answers_by_question: dict[str, list[StudentAnswer]] = {}
        for attempt in completed:
            for answer in attempt.answers:
                answers_by_question.setdefault(answer.question_id, []).append(answer)

        report = QuizAnalytics(
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            total_attempts=total_attempts,
            completed_attempts=len(completed),
            completion_rate=round(_ratio(len(completed), total_attempts) * 100, precision),
            average_score=average_score,
            pass_rate=_ratio(passed_count, len(completed)),
            passed_count=passed_count,
            failed_count=len(completed) - passed_count,
            average_time_to_complete_minutes=round(
                _ratio(sum(durations), len(durations)), precision
            ),
            difficulty=round(100.0 - average_score, precision) if completed else NEUTRAL_DIFFICULTY,
            score_distribution=score_distribution(percentages, precision),
            question_analytics=[
                analyze_question(question, answers_by_question.get(question.id, []), precision)
                for question in quiz.ordered_questions()
            ],
        )

        logger.debug(
            "Analytics gerado",
            quiz_id=quiz_id,
            completed_attempts=report.completed_attempts,
            average_score=report.average_score,
        )
        return report

    def student_summary(self, quiz_id: str, student_id: str) -> StudentQuizSummary:
        """Historico do aluno no quiz: tentativas, melhor nota, aprovacao."""
        if self.store.load_quiz(quiz_id) is None:
            raise NotFoundError("Quiz nao encontrado", {"quiz_id": quiz_id})

        attempts: list[QuizAttempt] = self.store.find_attempts(
            quiz_id=quiz_id, student_id=student_id
        )
        completed = [a for a in attempts if a.status == AttemptStatus.COMPLETED]
        scores = [a.percentage_score for a in completed if a.percentage_score is not None]

        return StudentQuizSummary(
            quiz_id=quiz_id,
            student_id=student_id,
            attempts=len(attempts),
            completed_attempts=len(completed),
            highest_score=max(scores) if scores else None,
            passed=any(a.passed for a in completed),
            has_active_attempt=any(a.status == AttemptStatus.IN_PROGRESS for a in attempts),
        )
