"""
FastAPI application main module.
Wires the campaign wizard, dashboard and insights API with request logging
and domain error handling.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uuid
import os
from contextlib import asynccontextmanager
from adpilot.api.deps import build_app_state
from adpilot.api.v1 import api_router
from adpilot.config import GEMINI_API_KEY, LOAD_DEMO_DATA
from adpilot.exceptions import (
    AdPilotError,
    CollaboratorError,
    DuplicateIdError,
    NotFoundError,
    PolicyError,
    ValidationError,
)
from adpilot.utils import setup_logging, get_logger
from adpilot.utils.circuit_breaker import GLOBAL_CIRCUIT_BREAKER

# Setup logging before creating the app
setup_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE") or None,
    enable_console=True
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
COLLABORATOR_UNAVAILABLE = "AI service is unavailable right now. Please try again."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Builds the in-memory campaign state unless one was installed already.
    """
    logger.info("Application startup initiated")
    if getattr(app.state, "adpilot", None) is None:
        app.state.adpilot = build_app_state(load_demo=LOAD_DEMO_DATA)
    if not GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; AI generation requests will fail")
    logger.info("Application startup completed successfully")
    try:
        yield
    finally:
        logger.info("Application shutdown initiated")
        state = getattr(app.state, "adpilot", None)
        if state is not None:
            state.wizard.reset()
        logger.info("Application shutdown completed")

# FastAPI app initialization
app = FastAPI(
    title="AdPilot Campaign Builder",
    description="""
    Campaign builder and dashboard for small-business advertisers.

    ## Features
    * **Guided wizard** - Five steps from business info to budget
    * **Cascade rules** - Upstream edits reset stale downstream choices
    * **AI assistance** - Overview, audience, copy and image generation
    * **Hard cap lock** - Spend at or above the cap stops delivery
    * **Insights** - Plain-English commentary on campaign metrics
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)

# CORS middleware - configure appropriately for production
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Compression middleware; generated images are sent as data URIs
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Request ID and request logging middleware
@app.middleware("http")
async def add_request_context_and_logging(request: Request, call_next):
    """
    Add request ID, timing, and request/response logging.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        remote_addr=request.client.host if request.client else "unknown",
        request_id=request_id
    )

    response = await call_next(request)

    process_time_ms = round((time.time() - start_time) * 1000, 2)
    response.headers[REQUEST_ID_HEADER] = request_id
    response.headers["X-Process-Time"] = str(process_time_ms)
    response.headers["X-Content-Type-Options"] = "nosniff"

    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time_ms=process_time_ms,
        request_id=request_id
    )
    return response


def _error_response(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "request_id": request_id, **extra},
    )

# Custom exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    logger.warning(
        "Request validation failed",
        errors=exc.errors(),
        request_id=getattr(request.state, "request_id", "unknown"),
        url=str(request.url),
        method=request.method
    )
    return _error_response(request, 422, "Request validation failed", details=jsonable_encoder(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=getattr(request.state, "request_id", "unknown"),
        url=str(request.url),
        method=request.method
    )
    return _error_response(request, exc.status_code, exc.detail)


@app.exception_handler(AdPilotError)
async def domain_exception_handler(request: Request, exc: AdPilotError):
    """Map domain errors to HTTP status codes."""
    if isinstance(exc, NotFoundError):
        status_code, message = 404, str(exc)
    elif isinstance(exc, (DuplicateIdError, PolicyError)):
        status_code, message = 409, str(exc)
    elif isinstance(exc, ValidationError):
        status_code, message = 422, str(exc)
    elif isinstance(exc, CollaboratorError):
        # Upstream details stay in the log.
        status_code, message = 502, COLLABORATOR_UNAVAILABLE
    else:
        status_code, message = 400, str(exc)

    logger.warning(
        "Domain error",
        error=str(exc),
        error_type=type(exc).__name__,
        status_code=status_code,
        request_id=getattr(request.state, "request_id", "unknown"),
        url=str(request.url),
        method=request.method
    )
    return _error_response(request, status_code, message, error_type=type(exc).__name__)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=getattr(request.state, "request_id", "unknown"),
        url=str(request.url),
        method=request.method,
        exc_info=True
    )
    return _error_response(request, 500, "Internal server error")

# Health check endpoints
@app.get("/health", tags=["health"], summary="Basic health check")
async def health_check(request: Request):
    """Basic health check endpoint for load balancers."""
    state = getattr(request.app.state, "adpilot", None)
    return {
        "status": "healthy" if state is not None else "starting",
        "service": "adpilot-campaign-backend",
        "version": "1.0.0",
        "timestamp": time.time(),
        "campaigns": len(state.registry) if state is not None else 0,
        "ai_configured": bool(GEMINI_API_KEY),
        "ai_circuits": GLOBAL_CIRCUIT_BREAKER.snapshot(),
    }

# API Documentation root
@app.get("/", tags=["root"])
async def root():
    """API root endpoint with basic information."""
    return {
        "message": "AdPilot Campaign Builder API",
        "version": "1.0.0",
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": "/api/v1"
    }

# Include API router with version prefix
app.include_router(api_router, prefix="/api/v1")

# Development server configuration
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting development server")

    uvicorn.run(
        "adpilot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["adpilot"],
        log_level="info",
        access_log=True
    )
