"""
FastAPI application for the invoice extraction service.

Provides endpoints for:
- Uploading PDF invoices
- AI extraction of invoice fields from stored PDFs
- Reviewed invoice CRUD and search
- Repackaging PDFs that viewers fail to render
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .database import init_db
from .errors import ServiceError
from .models import HealthResponse
from .routers import extract, invoices, pdf_convert, upload
from .services.ai import build_normalization_client
from .services.pdf_service import get_pdf_service

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Invoice Extraction Service...")
    settings = get_settings()
    # Note: In production, use migrations instead of init_db()
    init_db()
    get_pdf_service()
    app.state.normalization_client = build_normalization_client(settings)
    if settings.extract_sample_fallback:
        logger.warning(
            "EXTRACT_SAMPLE_FALLBACK is enabled: unreadable PDFs will be replaced by sample text"
        )
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down Invoice Extraction Service...")


# Create FastAPI application
app = FastAPI(
    title="Invoice Extraction API",
    description="Upload PDF invoices, extract their fields with AI, and manage reviewed records",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(status="healthy")


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy")


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(upload.router)
app.include_router(extract.router)
app.include_router(invoices.router)
app.include_router(pdf_convert.router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Handle domain errors as {detail, kind}."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "kind": exc.kind},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and parameters."""
    message = ", ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message, "kind": "ValidationError"},
    )
