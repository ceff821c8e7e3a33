"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from gatelog.routers import admin, guards, health, history, notes, pedestrians, vehicles
from gatelog.config import settings
from gatelog.exceptions import GateLogError, ValidationError
from gatelog.runtime import bootstrap
from gatelog.utils.logger import get_logger
import time

logger = get_logger(__name__)


# ── Startup / Shutdown ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Gate Log starting up...")
    runtime = bootstrap()
    app.state.runtime = runtime
    logger.info(f"✅ Database ready (slot '{settings.SLOT_KEY}' in {settings.DATA_DIR})")
    logger.info(f"🚗 Vehicle models available: {len(runtime.vehicle_models)}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")
    yield
    logger.info("🛑 Gate Log shutting down...")
    runtime.close()


app = FastAPI(
    title="Gate Log API",
    description="Guard post visit log: vehicles, pedestrians, shift notes, evidence. Fully offline.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── CORS (allow the guard post UI on the same LAN to call the API) ──────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the UI origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Data Layer Errors ────────────────────────────────────────────────────────
@app.exception_handler(GateLogError)
async def gatelog_exception_handler(request: Request, exc: GateLogError):
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})
    logger.error(f"Data layer failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"Storage failure: {exc}"},
    )


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(vehicles.router,    prefix="/api/v1", tags=["🚗 Vehicles"])
app.include_router(pedestrians.router, prefix="/api/v1", tags=["🚶 Pedestrians"])
app.include_router(history.router,     prefix="/api/v1", tags=["📜 History"])
app.include_router(notes.router,       prefix="/api/v1", tags=["📝 Shift Log"])
app.include_router(guards.router,      prefix="/api/v1", tags=["👮 Guards"])
app.include_router(admin.router,       prefix="/api/v1", tags=["⚙️ Admin"])
app.include_router(health.router,      prefix="/api/v1", tags=["💚 Health"])
