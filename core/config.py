# =============================================================================
# CONFIGURACAO DO MOTOR DE AVALIACAO
# =============================================================================
# Valores lidos do .env e de variaveis de ambiente com fallback seguro
# =============================================================================

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv


class StorageBackend(str, Enum):
    """Backends de persistencia disponiveis."""

    MEMORY = "memory"
    SQLITE = "sqlite"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@dataclass
class AssessmentConfig:
    """Configuracao centralizada do motor de avaliacao.

    Attributes:
        storage_backend: memory (padrao, testes) ou sqlite
        db_path: Caminho do banco SQLite
        sqlite_timeout_seconds: Espera maxima por lock de escrita
        default_passing_score: Nota minima (%) quando o quiz nao define uma
        score_precision: Casas decimais de score e percentual
        enforce_time_limit: Rejeita respostas apos o prazo da tentativa
        max_write_retries: Repeticoes quando outra operacao grava a mesma
            tentativa entre a leitura e a escrita
        manual_grade_correct_threshold: Fracao dos pontos para considerar
            correta uma resposta corrigida manualmente
        log_level: Nivel minimo de log
        log_json: Emite logs em JSON
    """

    storage_backend: StorageBackend = StorageBackend.MEMORY
    db_path: Path = Path("data") / "assessment.db"
    sqlite_timeout_seconds: float = 5.0
    default_passing_score: float = 60.0
    score_precision: int = 2
    enforce_time_limit: bool = True
    max_write_retries: int = 10
    manual_grade_correct_threshold: float = 0.5
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "AssessmentConfig":
        """Cria configuracao a partir das variaveis de ambiente."""
        backend_name = os.getenv("STORAGE_BACKEND", StorageBackend.MEMORY.value).lower()
        try:
            backend = StorageBackend(backend_name)
        except ValueError:
            backend = StorageBackend.MEMORY

        passing_score = _env_float("DEFAULT_PASSING_SCORE", 60.0)
        if not 0 <= passing_score <= 100:
            passing_score = 60.0

        threshold = _env_float("MANUAL_GRADE_CORRECT_THRESHOLD", 0.5)
        if not 0 <= threshold <= 1:
            threshold = 0.5

        return cls(
            storage_backend=backend,
            db_path=Path(os.getenv("ASSESSMENT_DB_PATH", str(Path("data") / "assessment.db"))),
            sqlite_timeout_seconds=_env_float("SQLITE_TIMEOUT_SECONDS", 5.0),
            default_passing_score=passing_score,
            score_precision=max(0, _env_int("SCORE_PRECISION", 2)),
            enforce_time_limit=_env_bool("ENFORCE_TIME_LIMIT", True),
            max_write_retries=max(1, _env_int("MAX_WRITE_RETRIES", 10)),
            manual_grade_correct_threshold=threshold,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_json=_env_bool("LOG_JSON", False),
        )

    def to_dict(self) -> dict[str, Any]:
        """Representacao agrupada por secao (para /health e debug)."""
        return {
            "storage": {
                "backend": self.storage_backend.value,
                "db_path": str(self.db_path),
                "sqlite_timeout_seconds": self.sqlite_timeout_seconds,
            },
            "grading": {
                "default_passing_score": self.default_passing_score,
                "score_precision": self.score_precision,
                "manual_grade_correct_threshold": self.manual_grade_correct_threshold,
            },
            "attempts": {
                "enforce_time_limit": self.enforce_time_limit,
                "max_write_retries": self.max_write_retries,
            },
            "logging": {
                "level": self.log_level,
                "json": self.log_json,
            },
        }


_config: Optional[AssessmentConfig] = None


def get_config() -> AssessmentConfig:
    """Retorna a configuracao global (singleton).

    Na primeira chamada carrega o `.env` do projeto; variaveis ja definidas
    no ambiente tem precedencia sobre o arquivo.
    """
    global _config
    if _config is None:
        load_dotenv()
        _config = AssessmentConfig.from_env()
    return _config


def reload_config(env_file: Optional[Path] = None) -> AssessmentConfig:
    """Relê o `.env` e as variaveis de ambiente e substitui o singleton.

    Args:
        env_file: Arquivo .env explicito (padrao: busca a partir do projeto)
    """
    global _config
    load_dotenv(env_file)
    _config = AssessmentConfig.from_env()
    return _config
