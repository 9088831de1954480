"""Assessment Models - Enums e Schemas."""

from .enums import AttemptStatus, QuestionType
from .schemas import (
    AnswerOption,
    AnswerReview,
    AttemptOptionView,
    AttemptQuestionView,
    AttemptReview,
    CreateQuizRequest,
    GradeAnswerRequest,
    GradePosted,
    GradeResult,
    InProgressAttemptView,
    OptionAnalytics,
    Question,
    QuestionAnalytics,
    Quiz,
    QuizAnalytics,
    QuizAttempt,
    ReviewOptionView,
    ScoreBucket,
    StartAttemptRequest,
    StudentAnswer,
    StudentQuizSummary,
    SubmitAnswerRequest,
)

__all__ = [
    # Enums
    "QuestionType",
    "AttemptStatus",
    # Banco de questoes
    "AnswerOption",
    "Question",
    "Quiz",
    # Tentativas
    "StudentAnswer",
    "QuizAttempt",
    "GradeResult",
    "GradePosted",
    # Requests
    "CreateQuizRequest",
    "StartAttemptRequest",
    "SubmitAnswerRequest",
    "GradeAnswerRequest",
    # Visoes
    "AttemptOptionView",
    "AttemptQuestionView",
    "InProgressAttemptView",
    "ReviewOptionView",
    "AnswerReview",
    "AttemptReview",
    # Analytics
    "OptionAnalytics",
    "QuestionAnalytics",
    "ScoreBucket",
    "QuizAnalytics",
    "StudentQuizSummary",
]
