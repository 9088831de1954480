"""Assessment Engines - Logica de negocios."""

from .analytics_engine import QuizAnalyticsAggregator, score_distribution
from .attempt_engine import AttemptLifecycleService
from .authoring_engine import QuizAuthoringService
from .events import GradeEventPublisher, GradeListener
from .grading_engine import grade, percentage_of, validate_question

__all__ = [
    "AttemptLifecycleService",
    "QuizAnalyticsAggregator",
    "QuizAuthoringService",
    "GradeEventPublisher",
    "GradeListener",
    "grade",
    "percentage_of",
    "score_distribution",
    "validate_question",
]
