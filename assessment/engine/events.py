"""Grade Events - Publicacao do evento GradePosted para colaboradores externos."""

from collections.abc import Callable

from core.logger import get_logger

from ..models.schemas import GradePosted

logger = get_logger("grade_events")

GradeListener = Callable[[GradePosted], None]


class GradeEventPublisher:
    """Distribui `GradePosted` para os assinantes registrados.

    O motor apenas anuncia que um estado terminal pontuado foi atingido; o
    envio de notificacoes fica com quem assina. Falha de um assinante e
    registrada em log e nao afeta os demais nem a tentativa ja persistida.
    """

    def __init__(self) -> None:
        self._listeners: list[GradeListener] = []

    def subscribe(self, listener: GradeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: GradeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: GradePosted) -> None:
        logger.info(
            "GradePosted",
            attempt_id=event.attempt_id,
            student_id=event.student_id,
            quiz_id=event.quiz_id,
            percentage_score=event.percentage_score,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "Falha em assinante de GradePosted",
                    attempt_id=event.attempt_id,
                    error=str(e),
                )
