"""
Stock Control FastAPI Main Application
Entry point for the stock control REST API
"""
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stockcore.api.v1.api_router import api_router
from stockcore.core.config import settings
from stockcore.core.database import check_db_connection, init_db
from stockcore.core.exceptions import (
    ConcurrencyConflict, InsufficientStock, InvalidState, InvalidTransition,
    NotFound, StockCoreError, ValidationError
)
from stockcore.core.logging import get_logger, setup_logging
from stockcore.schemas.common import HealthResponse

setup_logging()

logger = get_logger("api")

# Domain exception -> HTTP status
ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    InsufficientStock: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    InvalidState: status.HTTP_409_CONFLICT,
    ConcurrencyConflict: status.HTTP_409_CONFLICT,
}

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Stock Control API

    Multi-tenant stock-on-hand with weighted average costing.

    ### Key Features:
    - **Stock Ledger**: inbound/outbound movements, corrections and full history
    - **Reorder Engine**: pending purchase orders for products at or below their reorder level
    - **Purchase Orders**: pending -> approved -> ordered -> received, receipt books stock
    - **Inventory Checks**: physical counts that overwrite book stock on completion

    Every request carries its tenant in the `X-Tenant-ID` header.
    """,
    docs_url=settings.DOCS_URL,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
    return response


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """
    Health check endpoint for monitoring and load balancers

    Returns system status and database connectivity
    """
    db_status = check_db_connection()
    return {
        "status": "healthy" if db_status else "degraded",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": "connected" if db_status else "disconnected",
    }


# Application startup event
@app.on_event("startup")
async def startup_event():
    """
    Application startup tasks

    Verify the database and create missing tables
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    if not check_db_connection():
        logger.error("Failed to connect to database on startup")
        raise RuntimeError("Database connection failed")
    init_db()
    logger.info("Application startup completed successfully")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down application")


# Exception handlers
@app.exception_handler(StockCoreError)
async def stock_core_exception_handler(request: Request, exc: StockCoreError):
    """
    Map domain exceptions to HTTP responses

    Returns:
        JSON error response {"error": <type>, "detail": <message>}
    """
    status_code = next(
        (code for exc_type, code in ERROR_STATUS.items() if isinstance(exc, exc_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.error(f"Unmapped domain error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": exc.message or str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "ValidationError", "detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTPException", "detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors
    """
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "InternalServerError",
            "detail": str(exc) if settings.DEBUG else "An unexpected error occurred",
        }
    )


# Include API routers
app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "stockcore.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
