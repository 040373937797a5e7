from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from salespipe.api.routes import api_router
from salespipe.core.config import get_settings
from salespipe.core.rate_limit import SlidingWindowLimiter
from salespipe.db.base import Base
from salespipe.db.session import SessionLocal, engine
from salespipe.services.seed import seed_demo_data


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

settings = get_settings()
logger = logging.getLogger("salespipe.api")


def _seed_on_startup() -> None:
    with SessionLocal() as db:
        try:
            seed_demo_data(db)
        except Exception:
            db.rollback()
            logger.exception("Demo seed failed; continuing without demo data.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_schema:
        Base.metadata.create_all(bind=engine)
    if settings.seed_demo_data:
        _seed_on_startup()
    logger.info("%s started (prefix=%s).", settings.app_name, settings.api_prefix)
    yield
    engine.dispose()
    logger.info("%s stopped.", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

limiter = SlidingWindowLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds)


def _client_key(request: Request) -> str:
    # Caller identity when present, otherwise the socket address.
    caller = request.headers.get("x-user-id") or (request.client.host if request.client else "unknown")
    return f"{caller}:{request.method}"


@app.middleware("http")
async def throttle_and_trace(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    key = _client_key(request)
    if not limiter.hit(key, time.monotonic()):
        logger.warning("[%s] throttled %s on %s %s", request_id, key, request.method, request.url.path)
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Try again shortly."},
            headers={"Retry-After": str(int(settings.rate_limit_window_seconds)), "X-Request-ID": request_id},
        )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:  # pragma: no cover
        logger.exception("[%s] %s %s failed", request_id, request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "[%s] %s %s %s %.1fms",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.get("/healthz", tags=["health"])
def healthz() -> dict:
    return {
        "ok": True,
        "service": settings.app_name,
        "trackedClients": len(limiter),
        "checkedAt": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/", include_in_schema=False)
def index() -> dict[str, str]:
    forecasting = f"{settings.api_prefix}/forecasting"
    return {
        "service": settings.app_name,
        "pipeline": f"{forecasting}/pipeline",
        "forecast": f"{forecasting}/forecast",
        "winRate": f"{forecasting}/win-rate",
        "teamPerformance": f"{forecasting}/team-performance",
        "docs": "/docs",
    }


app.include_router(api_router, prefix=settings.api_prefix)
