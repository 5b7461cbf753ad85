"""
tournament_hub/main.py
FastAPI application: college tournament backend
"""
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from tournament_hub.config import settings
from tournament_hub.database import init_db, close_db
from tournament_hub.errors import ErrorCode, code_for_status, error_response, get_error_summary
from tournament_hub.exceptions import TournamentHubError
from tournament_hub.rate_limit import limiter
from tournament_hub.routes import router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

missing_vars = settings.missing_required()
if missing_vars:
    logger.error(f"Missing required environment variables: {', '.join(missing_vars)}")
    raise EnvironmentError(f"Missing required environment variables: {', '.join(missing_vars)}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Tournament Hub API ({settings.ENVIRONMENT})")
    try:
        await init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    yield

    logger.info("Stopping Tournament Hub API")
    await close_db()


app = FastAPI(
    title="Tournament Hub API",
    description="College tournament management backend",
    version="1.0.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan
)

# Attach rate limiter to the app
app.state.limiter = limiter

origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
origins.extend(settings.ALLOWED_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    error_details = []
    for error in exc.errors():
        error_details.append({
            "loc": list(error.get("loc", ())),
            "msg": error.get("msg"),
            "type": error.get("type"),
        })

    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        ErrorCode.VALIDATION_FAILED,
        details=error_details,
    )


@app.exception_handler(TournamentHubError)
async def tournament_hub_error_handler(request: Request, exc: TournamentHubError):
    if exc.status_code >= 500:
        log_id = str(uuid.uuid4())[:8]
        logger.error(f"[{log_id}] {exc.code} on {request.url.path}: {exc.message}")
        message = exc.message if settings.is_development else "An unexpected error occurred"
        return error_response(exc.status_code, message, exc.code, details={"log_id": log_id})

    logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return error_response(exc.status_code, exc.message, exc.code, details=exc.details, headers=headers)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded on {request.url.path} from {request.client.host if request.client else '-'}")
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        f"Too many requests: {exc.detail}",
        ErrorCode.RATE_LIMITED,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(f"HTTP exception on {request.url.path}: {exc.detail}")
    return error_response(
        exc.status_code,
        str(exc.detail),
        code_for_status(exc.status_code),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log_id = str(uuid.uuid4())[:8]
    logger.error(
        f"[{log_id}] Unhandled exception on {request.url.path}: {type(exc).__name__}: {str(exc)}",
        exc_info=exc,
    )
    message = f"{type(exc).__name__}: {exc}" if settings.is_development else "An unexpected error occurred"
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        message,
        ErrorCode.INTERNAL_ERROR,
        details={"log_id": log_id},
    )


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0"
    }


@app.get("/api/errors/health", tags=["Health"])
async def error_handling_health():
    return get_error_summary()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Tournament Hub API",
        "version": "1.0.0",
        "docs": "/docs" if settings.is_development else None
    }


app.include_router(router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tournament_hub.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
    )
