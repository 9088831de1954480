"""Assessment Module - Motor de avaliacao de quizzes.

Arquitetura:
- models/: Enums e Schemas Pydantic (quiz, tentativa, analytics)
- engine/: Grading, AttemptLifecycle, Analytics, Authoring, GradeEvents
- storage/: AssessmentStore (memoria e SQLite)
- router.py: FastAPI endpoints
"""

from .engine import (
    AttemptLifecycleService,
    GradeEventPublisher,
    QuizAnalyticsAggregator,
    QuizAuthoringService,
)
from .models import AttemptStatus, Question, QuestionType, Quiz, QuizAttempt
from .storage import AssessmentStore, MemoryAssessmentStore, SQLiteAssessmentStore, create_store

__all__ = [
    # Models
    "QuestionType",
    "AttemptStatus",
    "Quiz",
    "Question",
    "QuizAttempt",
    # Engines
    "AttemptLifecycleService",
    "QuizAnalyticsAggregator",
    "QuizAuthoringService",
    "GradeEventPublisher",
    # Storage
    "AssessmentStore",
    "MemoryAssessmentStore",
    "SQLiteAssessmentStore",
    "create_store",
]
