"""Assessment Store - Contrato de persistencia do motor de avaliacao."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.enums import AttemptStatus
from ..models.schemas import Quiz, QuizAttempt


class AssessmentStore(ABC):
    """Repositorio abstrato de quizzes e tentativas.

    Qualquer backend que cumpra este contrato atende o motor. Dois requisitos
    de atomicidade sao responsabilidade do backend:

    - `create_attempt` verifica e cria em uma unica operacao atomica, de modo
      que nunca existam duas tentativas IN_PROGRESS para o mesmo (quiz, aluno).
    - `save_attempt` grava apenas se a versao persistida ainda for a versao
      lida (compare-and-set) e, quando informado, se o status ainda for o
      esperado. Cada gravacao incrementa `version`; duas escritas concorrentes
      a partir da mesma leitura nunca sao ambas aceitas, entao nenhuma resposta
      registrada e sobrescrita por uma copia antiga da tentativa.

    Os objetos retornados sao copias: altera-los nao afeta o estado salvo.
    """

    # -------------------------------------------------------------------------
    # Quizzes
    # -------------------------------------------------------------------------

    @abstractmethod
    def load_quiz(self, quiz_id: str) -> Optional[Quiz]:
        """Carrega quiz (com questoes e alternativas) ou None."""

    @abstractmethod
    def save_quiz(self, quiz: Quiz) -> Quiz:
        """Insere ou substitui o quiz inteiro."""

    @abstractmethod
    def delete_quiz(self, quiz_id: str) -> bool:
        """Remove o quiz. Retorna False se nao existia."""

    @abstractmethod
    def find_quizzes(
        self, course_id: Optional[str] = None, published: Optional[bool] = None
    ) -> list[Quiz]:
        """Lista quizzes filtrando por curso e/ou publicacao."""

    # -------------------------------------------------------------------------
    # Tentativas
    # -------------------------------------------------------------------------

    @abstractmethod
    def load_attempt(self, attempt_id: str) -> Optional[QuizAttempt]:
        """Carrega tentativa (com respostas) ou None."""

    @abstractmethod
    def find_active_attempt(self, quiz_id: str, student_id: str) -> Optional[QuizAttempt]:
        """Tentativa IN_PROGRESS do aluno no quiz, se houver."""

    @abstractmethod
    def create_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        """Cria tentativa de forma atomica.

        Raises:
            AlreadyInProgressError: Se ja existe tentativa ativa para o par
        """

    @abstractmethod
    def save_attempt(
        self, attempt: QuizAttempt, expected_status: Optional[AttemptStatus] = None
    ) -> QuizAttempt:
        """Atualiza tentativa existente.

        Args:
            attempt: Estado completo a gravar; `attempt.version` e a versao lida
            expected_status: Se informado, grava apenas se o status salvo for este

        Returns:
            Copia gravada, com `version` incrementada

        Raises:
            NotFoundError: Tentativa inexistente
            AttemptNotActiveError: Status salvo diferente do esperado
            ConcurrentUpdateError: Versao salva diferente da lida
        """

    @abstractmethod
    def find_attempts(
        self,
        quiz_id: Optional[str] = None,
        student_id: Optional[str] = None,
        status: Optional[AttemptStatus] = None,
    ) -> list[QuizAttempt]:
        """Consulta tentativas por filtro, ordenadas por inicio."""

    def find_completed_attempts(self, quiz_id: str) -> list[QuizAttempt]:
        return self.find_attempts(quiz_id=quiz_id, status=AttemptStatus.COMPLETED)

    def find_overdue_candidates(self) -> list[QuizAttempt]:
        """Tentativas IN_PROGRESS; o prazo e avaliado por quem consulta."""
        return self.find_attempts(status=AttemptStatus.IN_PROGRESS)

    def count_attempts(self, quiz_id: str) -> int:
        return len(self.find_attempts(quiz_id=quiz_id))
