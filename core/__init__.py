"""Core - configuracao, logger e excecoes compartilhados."""

from .config import AssessmentConfig, StorageBackend, get_config, reload_config
from .exceptions import (
    AlreadyInProgressError,
    AssessmentError,
    AttemptNotActiveError,
    InvalidQuestionError,
    NotFoundError,
    QuizHasAttemptsError,
    QuizUnavailableError,
    ValidationError,
)
from .logger import configure_logging, get_logger

__all__ = [
    # Config
    "AssessmentConfig",
    "StorageBackend",
    "get_config",
    "reload_config",
    # Logger
    "configure_logging",
    "get_logger",
    # Exceptions
    "AssessmentError",
    "NotFoundError",
    "ValidationError",
    "AlreadyInProgressError",
    "QuizUnavailableError",
    "AttemptNotActiveError",
    "InvalidQuestionError",
    "QuizHasAttemptsError",
]
