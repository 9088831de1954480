"""Logger estruturado do motor de avaliacao.

Uso:
    logger = get_logger("attempts")
    logger.info("Tentativa iniciada", attempt_id=attempt.id, quiz_id=quiz.id)
"""

import logging

import structlog
from structlog.typing import FilteringBoundLogger

_configured = False


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configura o structlog (nivel minimo e renderizador).

    Args:
        level: Nome do nivel (DEBUG, INFO, WARNING, ERROR)
        json_logs: Se True, emite JSON em vez de saida de console
    """
    global _configured

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str) -> FilteringBoundLogger:
    """Retorna logger com o nome do componente ja vinculado."""
    if not _configured:
        from core.config import get_config

        config = get_config()
        configure_logging(config.log_level, config.log_json)

    return structlog.get_logger().bind(logger=name)
