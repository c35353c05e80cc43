"""Main application entry point."""
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shiftboard.api import assignments_router, claims_router, shifts_router, swaps_router
from shiftboard.api.dependencies import rate_limited
from shiftboard.config import settings
from shiftboard.database import init_db
from shiftboard.exceptions import RateLimitedError, SchedulingError, format_error_for_api
from shiftboard.scheduler import start_scheduler, stop_scheduler
from shiftboard.services.activity import ActivityLogger
from shiftboard.services.rate_limiter import build_rate_limiter


logger = logging.getLogger(__name__)

app = FastAPI(
    title="Shiftboard",
    description="Shift lifecycle, claims and swaps under concurrent access",
    version="1.0.0",
    debug=settings.debug
)

# One limiter per process, built from settings before the first request
app.state.rate_limiter = build_rate_limiter(settings)
app.state.activity_logger = ActivityLogger()

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"]
    )

app.include_router(shifts_router, prefix=settings.api_prefix)
app.include_router(claims_router, prefix=settings.api_prefix)
app.include_router(assignments_router, prefix=settings.api_prefix)
app.include_router(swaps_router, prefix=settings.api_prefix)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    """Render service errors as JSON with their status code."""
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=format_error_for_api(exc), headers=headers)


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    logging.basicConfig(level=settings.log_level.upper())
    init_db()
    if settings.scheduler_enabled:
        start_scheduler(app.state.rate_limiter, settings.maintenance_interval_seconds)
    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up on application shutdown."""
    stop_scheduler()


@app.get("/health", dependencies=[Depends(rate_limited("general"))])
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    import os
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.debug
    )
