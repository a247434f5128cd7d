"""
FastAPI App Factory - Creates and configures the app
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rotor.errors import (
    RotorError,
    InvalidArgument,
    MotionInProgressError,
    ParseError,
    PollCancelled,
    TimedOut,
    TransportError,
)
from .routes import connection_router, motion_router, position_router


# First match wins, so subclasses go before their bases
ERROR_STATUS = [
    (InvalidArgument, 422),
    (MotionInProgressError, 409),
    (PollCancelled, 409),
    (TimedOut, 504),
    (ParseError, 502),
    (TransportError, 503),
]


def status_for(exc: RotorError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""

    app = FastAPI(
        title="Antenna Rotor API",
        description="REST API for a serial stepper-motor antenna rotator",
        version="1.0.0",
    )

    # CORS - must be added first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RotorError)
    async def rotor_exception_handler(request: Request, exc: RotorError):
        return JSONResponse(
            status_code=status_for(exc),
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    # Global exception handler to ensure CORS headers on errors
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc)},
        )

    # Register routers with /api prefix
    app.include_router(connection_router, prefix="/api")
    app.include_router(motion_router, prefix="/api")
    app.include_router(position_router, prefix="/api")

    return app
