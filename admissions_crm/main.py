"""
Admissions CRM - FastAPI Application

Main entry point for the backend API serving the admin, sales-rep,
student and preceptor portals.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from admissions_crm.config.settings import settings
from admissions_crm.infrastructure.exceptions import (
    AdmissionsCRMError,
    DuplicateError,
    NotFoundError,
    TenantAccessError,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Admissions CRM backend starting in {settings.environment} mode...")

    if settings.database_url or settings.supabase_password:
        try:
            from admissions_crm.infrastructure.db.database import init_db
            await init_db()
            logger.info("Database connection pool initialized")
        except Exception as e:
            logger.warning(f"Database initialization skipped: {e}")

    yield

    if settings.database_url or settings.supabase_password:
        try:
            from admissions_crm.infrastructure.db.database import close_db
            await close_db()
            logger.info("Database connection pool closed")
        except Exception as e:
            logger.warning(f"Database shutdown error: {e}")

    logger.info("Admissions CRM backend shutting down...")


app = FastAPI(
    title="Admissions CRM",
    description="Multi-tenant admissions and enrollment CRM",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle validation and business-rule errors."""
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(TenantAccessError)
async def tenant_access_error_handler(request: Request, exc: TenantAccessError):
    """Handle tenant membership and role errors."""
    return JSONResponse(status_code=403, content=exc.to_dict())


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle not found errors."""
    return JSONResponse(status_code=404, content=exc.to_dict())


@app.exception_handler(DuplicateError)
async def duplicate_error_handler(request: Request, exc: DuplicateError):
    """Handle duplicate resource errors."""
    return JSONResponse(status_code=409, content=exc.to_dict())


@app.exception_handler(AdmissionsCRMError)
async def general_error_handler(request: Request, exc: AdmissionsCRMError):
    """Handle all other application errors."""
    logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=500, content=exc.to_dict())


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "admissions-crm"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Admissions CRM API",
        "version": "1.0.0",
        "docs": "/docs",
    }


# ============================================================================
# Import and register routers
# ============================================================================

from admissions_crm.api.routes import (  # noqa: E402
    capacity,
    documents,
    leads,
    portal,
    practicum,
    program_fit,
    requirements,
)

app.include_router(leads.router)
app.include_router(documents.router)
app.include_router(requirements.router)
app.include_router(program_fit.router)
app.include_router(capacity.router)
app.include_router(practicum.router)
app.include_router(portal.router)
