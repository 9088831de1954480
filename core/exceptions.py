"""Excecoes do motor de avaliacao.

Todas as condicoes de erro do motor sao recuperaveis e voltadas ao chamador:
a camada HTTP converte cada uma em resposta usando `status_code` e `to_dict()`.
"""

from typing import Any, Optional


class AssessmentError(Exception):
    """Excecao base do motor de avaliacao.

    Attributes:
        message: Mensagem legivel
        details: Contexto adicional (ids envolvidos, valores invalidos)
        error_code: Identificador estavel do tipo de erro
        status_code: Codigo HTTP sugerido para a camada de API

    Example:
        >>> try:
        ...     service.finalize_attempt("abc")
        ... except AssessmentError as e:
        ...     logger.error("Falha", error=e.message, **e.details)
    """

    error_code = "assessment_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serializa a excecao para resposta de API."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(AssessmentError):
    """Quiz, tentativa, questao ou resposta inexistente."""

    error_code = "not_found"
    status_code = 404


class ValidationError(AssessmentError):
    """Dados invalidos (questao mal configurada, nota fora do intervalo...)."""

    error_code = "validation_error"
    status_code = 422


class AlreadyInProgressError(AssessmentError):
    """Ja existe uma tentativa IN_PROGRESS para (quiz, aluno)."""

    error_code = "already_in_progress"
    status_code = 409


class QuizUnavailableError(AssessmentError):
    """Quiz nao publicado ou fora da janela de disponibilidade."""

    error_code = "quiz_unavailable"
    status_code = 409


class AttemptNotActiveError(AssessmentError):
    """Operacao exige tentativa IN_PROGRESS, mas ela ja e terminal."""

    error_code = "attempt_not_active"
    status_code = 409


class InvalidQuestionError(AssessmentError):
    """Questao nao pertence ao quiz da tentativa."""

    error_code = "invalid_question"
    status_code = 422


class QuizHasAttemptsError(ValidationError):
    """Quiz com historico de tentativas nao pode ser removido."""

    error_code = "quiz_has_attempts"
    status_code = 409


class ConcurrentUpdateError(AssessmentError):
    """Tentativa gravada por outra operacao entre a leitura e a escrita.

    O servico repete a operacao sobre o estado novo; so chega ao chamador
    quando as repeticoes se esgotam.
    """

    error_code = "concurrent_update"
    status_code = 409
