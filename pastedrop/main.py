"""
PasteDrop - Main FastAPI application.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pastedrop.config import settings
from pastedrop.database import PasteStoreError
from pastedrop.models import MAX_TTL_SECONDS
from pastedrop.routes import health, pastes

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="PasteDrop",
    description="Share text behind links that expire by time or view count",
    version="1.0.0",
)

# Add CORS middleware (optional, for cross-origin requests)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include route modules
app.include_router(health.router)
app.include_router(pastes.router)

# Messages for invalid create requests, keyed by body field
FIELD_ERRORS = {
    "content": "content is required and must be a non-empty string",
    "ttl_seconds": f"ttl_seconds must be an integer between 1 and {MAX_TTL_SECONDS}",
    "max_views": "max_views must be an integer >= 1",
}


def validation_message(errors) -> str:
    """Pick a client-facing message naming the first invalid field."""
    for error in errors:
        loc = error.get("loc", ())
        if len(loc) > 1 and loc[0] == "body" and loc[1] in FIELD_ERRORS:
            return FIELD_ERRORS[loc[1]]
    return "Request body must be a JSON object"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = validation_message(exc.errors())
    logger.info(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"detail": message})


@app.exception_handler(PasteStoreError)
async def store_exception_handler(request: Request, exc: PasteStoreError) -> JSONResponse:
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.on_event("startup")
async def startup_event():
    """Startup event handler."""
    logger.info("PasteDrop application starting...")

    # The store itself is built lazily on the first request
    if settings.backend_name == "file":
        logger.warning(f"⚠️  STORAGE: Using JSON file {settings.PASTES_FILE} (DATABASE_URL not set)")
    else:
        logger.info("✅ STORAGE: Relational database configured")

    if settings.TEST_MODE:
        logger.warning("TEST_MODE enabled: x-test-now-ms header overrides the clock")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown event handler."""
    logger.info("PasteDrop application shutting down...")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "pastedrop.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
