"""
ArcadeBoard API - leaderboard backend for casual games

Application entry point: logging, middleware, exception handlers, routers
and lifecycle management.
"""
import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from arcadeboard.config import get_settings
from arcadeboard.database import init_db
from arcadeboard.api.auth import router as auth_router
from arcadeboard.api.health import router as health_router
from arcadeboard.api.leaderboard import router as leaderboard_router
from arcadeboard.api.runs import router as runs_router
from arcadeboard.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware

settings = get_settings()

handlers = [logging.StreamHandler(sys.stdout)]
if settings.log_file:
    handlers.append(logging.FileHandler(settings.log_file))

logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=handlers
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the schema on startup and start New Relic when configured.
    """
    logger.info("ArcadeBoard API starting up")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}", exc_info=True)
        raise

    if settings.new_relic_license_key:
        try:
            import newrelic.agent
            newrelic.agent.initialize()
            logger.info("New Relic agent initialized")
        except ImportError:
            logger.warning("New Relic package not installed. Monitoring disabled.")
        except Exception as e:
            logger.warning(f"New Relic initialization failed: {str(e)}")

    logger.info(
        f"Supported games (v{settings.games_version}): {', '.join(settings.supported_games)}; "
        f"default: {settings.default_game}"
    )
    logger.info(f"API documentation at http://{settings.api_host}:{settings.api_port}/docs")

    yield

    logger.info("ArcadeBoard API shut down")


tags_metadata = [
    {"name": "runs", "description": "Submit finished game runs."},
    {"name": "leaderboard", "description": "Global and per-game rankings and player records."},
    {"name": "auth", "description": "Account registration and login."},
    {"name": "health", "description": "Service health."},
]

app = FastAPI(
    title="ArcadeBoard API",
    description="""
    ## Leaderboard backend for casual games

    - Submit runs and keep each player's best score, best time and last level
    - Global ranking from player records, per-game ranking from run history
    - Username/password accounts with 7-day bearer tokens
    """,
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=tags_metadata,
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS is added last so it wraps everything, including preflight requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=settings.cors_origin_regex or None,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["X-Request-ID"],
    max_age=3600,
)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message, **extra})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Invalid input is a 400 listing each offending field."""
    detail = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or "body",
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    logger.warning(f"Validation error on {request.url.path}: {detail}")
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid input", detail=detail)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
    else:
        logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Last resort: log everything, tell the caller nothing."""
    logger.error(f"Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")


app.include_router(runs_router)
app.include_router(leaderboard_router)
app.include_router(auth_router)
app.include_router(health_router)


@app.get("/", tags=["health"])
async def root():
    return {
        "ok": True,
        "message": "Welcome to ArcadeBoard API",
        "version": "1.0.0",
        "docs": "/docs",
        "games": settings.supported_games,
        "endpoints": {
            "submit_run": "POST /api/runs",
            "leaderboard": "GET /api/leaderboard?limit=&game=",
            "player": "GET /api/player/{playerId}",
            "register": "POST /api/register",
            "login": "POST /api/login",
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "arcadeboard.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level="info",
    )
