"""
Registry Collector Web API.

Запуск:
    uvicorn registry_collector.api.main:app --host 0.0.0.0 --port 8080
    # или
    python -m registry_collector serve --port 8080

Документация:
    http://localhost:8080/docs (Swagger UI)
    http://localhost:8080/redoc (ReDoc)
"""

import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .schemas import HealthResponse, ErrorResponse
from .routes import stages_router
from .services import get_collector
from ..collectors import MicroserviceCollector
from ..core.exceptions import UnknownStageError, MalformedDocumentError
from ..core.logging import get_logger

logger = get_logger(__name__)

# Время запуска для uptime
START_TIME = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events."""
    logger.info(f"Registry Collector API v{__version__} starting...")
    yield
    logger.info("Registry Collector API shutting down...")


app = FastAPI(
    title="Registry Collector API",
    description="""
## Registry Collector Web API

Микросервисы из реестра сервисов (Eureka) по stage'ам.

### Возможности

- **Stages** - Список stage'ей из конфигурации
- **Microservices** - Хосты, порты, consumes и metadata сервисов stage
- **Refresh** - Сброс кэша stage
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# Exception handlers
# =============================================================================

@app.exception_handler(UnknownStageError)
async def unknown_stage_handler(request: Request, exc: UnknownStageError):
    """Неизвестный stage - 404."""
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(
            error="Unknown stage",
            detail=exc.message,
            details=exc.details,
        ).model_dump(),
    )


@app.exception_handler(MalformedDocumentError)
async def malformed_document_handler(request: Request, exc: MalformedDocumentError):
    """Реестр ответил, но документ повреждён - 502."""
    logger.error(f"Malformed registry document: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorResponse(
            error="Malformed registry document",
            detail=exc.message,
            details=exc.details,
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Глобальный обработчик ошибок."""
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal Server Error",
            detail=str(exc),
        ).model_dump(),
    )


# =============================================================================
# Health check
# =============================================================================

@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check",
)
def health_check(collector: MicroserviceCollector = Depends(get_collector)):
    """Проверка состояния API."""
    return HealthResponse(
        status="ok",
        version=__version__,
        uptime=time.time() - START_TIME,
        offline_mode=collector.offline_mode,
    )


@app.get("/", tags=["Health"])
async def root():
    """Корневой endpoint."""
    return {
        "name": "Registry Collector API",
        "version": __version__,
        "docs": "/docs",
    }


# =============================================================================
# Routes
# =============================================================================

app.include_router(stages_router, prefix="/api/stages", tags=["Stages"])
