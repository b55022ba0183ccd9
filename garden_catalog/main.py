"""
Garden Catalog API.

Wires the routers together, serves stored plant photos from ``/uploads`` and
logs one line per request with its timing.
"""
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from garden_catalog.config import settings
from garden_catalog.database import close_db, init_db
from garden_catalog.routers import beds, chat, feedback, health, photos, plants, users

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# Paths polled by the client or fetched in bulk; not worth a log line each
_QUIET_PREFIXES = ("/uploads/", "/api/health")


def _report_integrations() -> None:
    """Log which hosted services are configured.  Missing keys only degrade features."""
    if settings.gemini_configured:
        logger.info("✓ Gemini assistant: %s", settings.GEMINI_MODEL)
    else:
        logger.warning("⚠ GEMINI_API_KEY not set: chat saves messages and sends a canned reply")

    if settings.plantid_configured:
        logger.info("✓ Plant.id identification enabled")
    else:
        logger.warning("⚠ PLANTID_API_KEY not set: /api/identify-plant returns 503")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Garden Catalog API v%s", VERSION)

    try:
        await init_db()
    except Exception as exc:
        logger.error("✗ Database unavailable: %s", exc)
        raise

    _report_integrations()

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    logger.info("✓ Photos stored in %s", os.path.abspath(settings.UPLOAD_DIR))
    logger.info("Ready on http://%s:%d (docs at /docs)", settings.HOST, settings.PORT)

    yield

    await close_db()
    logger.info("Garden Catalog API stopped")


app = FastAPI(
    title="Garden Catalog API",
    description=(
        "Catalog the plants in your garden beds by chatting with an assistant, "
        "identify plants from photos, and browse or edit the catalog.\n\n"
        "- `POST /api/chat`: talk to the assistant (may add/remove plants and beds)\n"
        "- `GET  /api/users/{id}/catalog`: every bed with its plants\n"
        "- `POST /api/upload`: store a plant photo\n"
        "- `POST /api/identify-plant`: identify a photo via Plant.id\n"
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Time every request and expose it as ``X-Process-Time`` (ms)."""
    started = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - started) * 1000, 2)

    path = request.url.path
    if path != "/" and not path.startswith(_QUIET_PREFIXES):
        logger.info("%s %s %d in %.2f ms", request.method, path, response.status_code, elapsed_ms)

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": request.url.path,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


app.include_router(health.router,   prefix="/api/health",   tags=["Health"])
app.include_router(users.router,    prefix="/api/users",    tags=["Users"])
app.include_router(beds.router,     prefix="/api/beds",     tags=["Garden Beds"])
app.include_router(plants.router,   prefix="/api/plants",   tags=["Plants"])
app.include_router(photos.router,   prefix="/api",          tags=["Photos"])
app.include_router(chat.router,     prefix="/api",          tags=["Chat"])
app.include_router(feedback.router, prefix="/api/feedback", tags=["Feedback"])

# The directory itself is created in lifespan
app.mount(
    "/uploads",
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.get("/", include_in_schema=False)
async def root():
    return {
        "name": "Garden Catalog API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "users": "/api/users",
            "beds": "/api/beds",
            "plants": "/api/plants",
            "chat": "/api/chat",
            "conversations": "/api/conversations/{userId}",
            "upload": "/api/upload",
            "identify": "/api/identify-plant",
            "feedback": "/api/feedback",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "garden_catalog.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
    )
