"""Core module - estado compartilhado da aplicacao (store e servicos)."""

from __future__ import annotations

import threading
from typing import Optional

from assessment.engine import (
    AttemptLifecycleService,
    GradeEventPublisher,
    QuizAnalyticsAggregator,
    QuizAuthoringService,
)
from assessment.storage import AssessmentStore, create_store
from core.config import get_config
from core.logger import get_logger

logger = get_logger("app_state")

# =============================================================================
# SINGLETONS
# =============================================================================

store: Optional[AssessmentStore] = None
publisher: Optional[GradeEventPublisher] = None
attempt_service: Optional[AttemptLifecycleService] = None
analytics: Optional[QuizAnalyticsAggregator] = None
authoring: Optional[QuizAuthoringService] = None

# Endpoints sync rodam em threadpool; a inicializacao preguicosa e serializada
_init_lock = threading.Lock()


def _ensure_initialized() -> None:
    global store, publisher, attempt_service, analytics, authoring

    with _init_lock:
        if store is not None:
            return

        config = get_config()
        new_store = create_store(config)
        publisher = GradeEventPublisher()
        attempt_service = AttemptLifecycleService(new_store, publisher=publisher, config=config)
        analytics = QuizAnalyticsAggregator(new_store, config=config)
        authoring = QuizAuthoringService(new_store, config=config)
        store = new_store

        logger.info("Servicos de avaliacao inicializados", backend=config.storage_backend.value)


def get_store() -> AssessmentStore:
    _ensure_initialized()
    return store


def get_publisher() -> GradeEventPublisher:
    _ensure_initialized()
    return publisher


def get_attempt_service() -> AttemptLifecycleService:
    _ensure_initialized()
    return attempt_service


def get_analytics() -> QuizAnalyticsAggregator:
    _ensure_initialized()
    return analytics


def get_authoring() -> QuizAuthoringService:
    _ensure_initialized()
    return authoring


def reset_state() -> None:
    """Descarta os singletons; a proxima chamada recria a partir da configuracao."""
    global store, publisher, attempt_service, analytics, authoring

    with _init_lock:
        store = None
        publisher = None
        attempt_service = None
        analytics = None
        authoring = None
    logger.info("Estado da aplicacao descartado")
