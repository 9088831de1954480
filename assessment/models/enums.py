"""Assessment Enums - Tipos de questao e status de tentativa."""

from enum import Enum


class QuestionType(str, Enum):
    """Tipos de questao suportados pelo motor de correcao."""

    MULTIPLE_CHOICE = "multiple_choice"  # Uma alternativa correta
    MULTIPLE_ANSWER = "multiple_answer"  # Varias corretas, credito parcial
    TRUE_FALSE = "true_false"  # Duas alternativas, uma correta
    SHORT_ANSWER = "short_answer"  # Texto comparado com respostas aceitas
    ESSAY = "essay"  # Correcao manual

    @property
    def uses_options(self) -> bool:
        """Se a resposta do aluno e um conjunto de alternativas."""
        return self in (
            QuestionType.MULTIPLE_CHOICE,
            QuestionType.MULTIPLE_ANSWER,
            QuestionType.TRUE_FALSE,
        )


class AttemptStatus(str, Enum):
    """Estados da maquina de estados de uma tentativa."""

    IN_PROGRESS = "in_progress"  # Unico estado inicial
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not AttemptStatus.IN_PROGRESS
