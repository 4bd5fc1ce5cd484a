"""Main FastAPI application module.

This module initializes the Remote Content Service and registers all route
handlers.
"""

import logging
from datetime import datetime

import pytz
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging_config import setup_logging
from config import (
    API_HOST,
    API_PORT,
    CORS_ALLOWED_ORIGINS,
    IMAGES_DIR,
    SEED_SAMPLE_DATA,
)
from core.database import SessionLocal, db_healthcheck, init_db, seed_sample_data
from api.routes import articles, auth, notifications, users

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title="School Magazine API",
    description="Remote content service for the school magazine portal.",
    version="1.0.0",
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded article images are served from here
IMAGES_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/images", StaticFiles(directory=str(IMAGES_DIR)), name="images")

# Register route handlers
app.include_router(auth.router)
app.include_router(articles.router)
app.include_router(users.router)
app.include_router(notifications.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return every HTTP error as ``{"error": message}``."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = [
        f"{'.'.join(str(part) for part in err['loc'][1:])}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(messages) or "Invalid request"},
    )


@app.on_event("startup")
def startup_tasks() -> None:
    """Create tables and insert sample data into an empty database."""
    init_db()
    if SEED_SAMPLE_DATA:
        db = SessionLocal()
        try:
            seed_sample_data(db)
        finally:
            db.close()


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links."""
    return {
        "name": "School Magazine API",
        "version": "1.0.0",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health():
    """Report whether the database answers.

    Returns:
        ``{status, timestamp}``; status 503 when the database is unreachable.
    """
    timestamp = datetime.now(pytz.utc).isoformat()
    ok, error = db_healthcheck()
    if not ok:
        logger.error("Health check failed: %s", error)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "timestamp": timestamp, "error": error},
        )
    return {"status": "ok", "timestamp": timestamp}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    logger.info("Starting School Magazine API at %s (docs: %s/docs)", server_url, server_url)
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
