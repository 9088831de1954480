# =============================================================================
# CONFTEST - Pytest Fixtures Globais
# =============================================================================
# Garante o root no path e um ambiente de configuracao previsivel
# =============================================================================

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Adicionar root ao path
sys.path.insert(0, str(Path(__file__).parent))


# =============================================================================
# FIXTURES DE AMBIENTE
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_env():
    """Configura variáveis de ambiente para testes."""
    env_vars = {
        "STORAGE_BACKEND": "memory",
        "DEFAULT_PASSING_SCORE": "60",
        "SCORE_PRECISION": "2",
        "ENFORCE_TIME_LIMIT": "true",
        "LOG_LEVEL": "ERROR",
    }
    with patch.dict(os.environ, env_vars):
        yield


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Retorna path temporário para banco de dados."""
    return tmp_path / "test_assessment.db"
