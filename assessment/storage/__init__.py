"""Assessment Storage - Contrato de repositorio e backends."""

from core.config import AssessmentConfig, StorageBackend

from .base import AssessmentStore
from .memory_store import MemoryAssessmentStore
from .sqlite_store import SQLiteAssessmentStore


def create_store(config: AssessmentConfig) -> AssessmentStore:
    """Instancia o backend definido na configuracao."""
    if config.storage_backend == StorageBackend.SQLITE:
        return SQLiteAssessmentStore(config.db_path, timeout=config.sqlite_timeout_seconds)
    return MemoryAssessmentStore()


__all__ = [
    "AssessmentStore",
    "MemoryAssessmentStore",
    "SQLiteAssessmentStore",
    "create_store",
]
