import asyncio
import logging
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from coachlink.config import settings
from coachlink.db.session import engine, init_db
from coachlink.analytics.routing import router as analytics_router
from coachlink.auth.routing import router as auth_router
from coachlink.comments.routing import router as comments_router
from coachlink.content.routing import router as content_router
from coachlink.health.monitor import RequestMonitorMiddleware, monitor, prune_periodically
from coachlink.health.routing import router as health_router

# Logging
_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
logging.basicConfig(
    level=_level,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)
for _logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_logger_name).setLevel(_level)

logger = logging.getLogger("coachlink")

# CORS
origins = [origin for origin in settings.CORS_ORIGINS if origin]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    pruner = asyncio.create_task(
        prune_periodically(monitor, settings.HEALTH_PRUNE_INTERVAL_SECONDS)
    )
    yield
    pruner.cancel()
    with suppress(asyncio.CancelledError):
        await pruner
    engine.dispose()


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client = request.client.host if request.client else "-"
        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} from {client} "
                f"after {process_time:.3f}s - {e}"
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} from {client} -> "
            f"{response.status_code} in {process_time:.3f}s"
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


app = FastAPI(
    title="CoachLink API",
    description=(
        "CoachLink lets coaches share training videos from social media with their players, "
        "track who watched what, collect comments and likes, and review usage analytics."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "message": f"Too many requests: {exc.detail}",
            "type": "rate_limit_exceeded",
        },
        headers={"Retry-After": "60"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Unhandled database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Innermost first: rate limiting, request sampling, request logging, CORS.
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestMonitorMiddleware, monitor=monitor)
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Prometheus metrics
Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

app.include_router(auth_router, prefix='/api/auth')
app.include_router(content_router, prefix='/api/content')
app.include_router(comments_router, prefix='/api')
app.include_router(analytics_router, prefix='/api/analytics')
app.include_router(health_router, prefix='/api/health')


@app.get("/healthz")
def read_api_health():
    return {"status": "ok"}
