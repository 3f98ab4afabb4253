"""
FastAPI application entry point for the Ledgerbook backend.

This module creates the FastAPI app instance and registers all routers.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from ledgerbook.config import settings
from ledgerbook.routes.accounts import router as accounts_router
from ledgerbook.routes.auth import router as auth_router
from ledgerbook.routes.budgets import router as budgets_router
from ledgerbook.routes.categories import router as categories_router
from ledgerbook.routes.health import router as health_router
from ledgerbook.routes.invoices import router as invoices_router
from ledgerbook.routes.members import router as members_router
from ledgerbook.routes.organizations import router as organizations_router
from ledgerbook.routes.reports import router as reports_router
from ledgerbook.routes.transactions import router as transactions_router

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    - ENVIRONMENT=production: Uses CORS_ALLOWED_ORIGINS (empty means no web origins)
    - Any other environment: Allows all origins for local development

    Returns:
        List of allowed origin URLs, or ["*"] outside production.
    """
    if settings.is_production():
        origins = settings.CORS_ALLOWED_ORIGINS
        if origins:
            logger.info(f"CORS configured for production with {len(origins)} allowed origins")
        else:
            logger.warning(
                "CORS_ALLOWED_ORIGINS not set in production. "
                "No web origins allowed. Set CORS_ALLOWED_ORIGINS for the web client."
            )
        return origins

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


# Create FastAPI app
app = FastAPI(
    title="Ledgerbook API",
    description="Backend service for Ledgerbook small-business accounting",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


def _jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that aren't JSON serializable
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log detailed validation errors and return them in the common error shape."""
    logger.error(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "details": _jsonable_errors(exc),
        }
    )


# Configure CORS with environment-based origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(organizations_router)
app.include_router(members_router)
app.include_router(accounts_router)
app.include_router(categories_router)
app.include_router(transactions_router)
app.include_router(budgets_router)
app.include_router(invoices_router)
app.include_router(reports_router)

logger.info("FastAPI app initialized successfully")
