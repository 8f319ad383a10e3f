from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reservas.config import get_settings
from reservas.core.exceptions import (
    BookingError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from reservas.database import create_db_and_tables
from reservas.logging_config import setup_logging
from reservas.routers import appointments
from reservas.routers import availability
from reservas.routers import business_hours, blocked_dates
from reservas.routers import payments
from reservas.routers import services


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    create_db_and_tables()
    yield


app = FastAPI(title=get_settings().APP_NAME, lifespan=lifespan)
app.include_router(availability.router)
app.include_router(appointments.router)
app.include_router(services.router)
app.include_router(business_hours.router)
app.include_router(blocked_dates.router)
app.include_router(payments.router)


def status_code_for(exc: BookingError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, StateConflictError):
        return 409
    return 400


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"detail": exc.message, "error": type(exc).__name__},
    )


@app.get("/")
def root():
    return {"message": "API plataforma de reservas funcionando 🚀"}
