"""
Assessment Server - Motor de avaliacao de quizzes

FastAPI server com:
- Autoria de quizzes (questoes, publicacao)
- Ciclo de vida de tentativas (inicio, respostas, finalizacao, expiracao)
- Correcao manual de dissertativas
- Analytics por quiz e por aluno
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app_state
from assessment.router import router as assessment_router
from core.config import get_config
from core.logger import get_logger

logger = get_logger("server")


# =============================================================================
# FASTAPI APP
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle."""
    config = get_config()
    logger.info("Iniciando Assessment Server", backend=config.storage_backend.value)
    app_state.get_store()
    yield
    app_state.reset_state()
    logger.info("Assessment Server encerrado")


app = FastAPI(
    title="Assessment Engine",
    description="Motor de avaliacao de quizzes para cursos",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:8001",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8001",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(assessment_router)


# =============================================================================
# HEALTH ENDPOINTS
# =============================================================================


@app.get("/")
async def root():
    """Health check."""
    return {
        "status": "ok",
        "message": "Assessment Engine v1",
    }


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "config": get_config().to_dict(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
