# medslot/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from medslot.core.config import settings
from medslot.core.errors import SchedulingError
from medslot.core.logging import setup_logging
from medslot.db.sql import init_db
from medslot.modules.users.schemas import ErrorResponse
from medslot.routers import admin, appointments, auth, dev, doctor, doctors, health

logger = logging.getLogger(__name__)


# Define lifespan event
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    The lifespan function is used to manage the FastAPI application lifecycle.
    """
    setup_logging(settings.LOG_LEVEL)
    logger.info("Starting medslot (%s)", settings.APP_ENV)
    # Initialize database (create tables if they don't exist)
    await init_db()
    yield
    logger.info("medslot shut down")

app = FastAPI(
    title="Doctor Appointment Scheduling API",
    lifespan=lifespan,
)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    """Every booking-core error, rendered with its stable code."""
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.code, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.code,
            message=exc.message,
            status=exc.status_code,
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected exceptions."""
    logger.error("Unexpected error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="internal_error",
            message="An unexpected error occurred. Please try again later.",
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ).model_dump(),
    )


# Routing
app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=settings.API_PREFIX, tags=["auth"])
app.include_router(doctors.router, prefix=settings.API_PREFIX, tags=["doctors"])
app.include_router(doctor.router, prefix=settings.API_PREFIX, tags=["doctor"])
app.include_router(appointments.router, prefix=settings.API_PREFIX, tags=["appointments"])
app.include_router(admin.router, prefix=settings.API_PREFIX, tags=["admin"])
app.include_router(dev.router, prefix=settings.API_PREFIX, tags=["dev"])

@app.get("/")
def root():
    return {"message": "Doctor appointment scheduling API running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("medslot.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
