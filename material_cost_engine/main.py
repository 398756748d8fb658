"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from material_cost_engine.api.v1.router import router as api_v1_router
from material_cost_engine.config import settings
from material_cost_engine.domain.exceptions import WorkbookError, WorkbookOpenError
from material_cost_engine.logging_config import configure_logging
from material_cost_engine.middleware import CorrelationIdMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    """Configure application resources on startup."""
    configure_logging(log_level=settings.log_level)
    yield


app = FastAPI(
    title="Material Cost Engine API",
    description="Per-batch material costing and inventory ledger",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Attach correlation ID middleware (must be added before routes)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(api_v1_router)


@app.exception_handler(WorkbookError)
async def workbook_error_handler(request: Request, exc: WorkbookError) -> JSONResponse:
    """Workbook problems are input errors, except an unreadable file."""
    if isinstance(exc, WorkbookOpenError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    logger.warning("Workbook error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.get("/health", tags=["health"])
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}
