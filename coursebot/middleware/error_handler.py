"""
Turns exceptions that escape a route into JSON responses.

Database failures mid-request get the same 503 and setup hint as a database
that was down at startup; anything else is a plain 500.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from coursebot.dependencies import SETUP_HINT


async def global_exception_handler(request: Request, call_next):
    try:
        return await call_next(request)
    except SQLAlchemyError as exc:
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=503,
            content={"detail": {"message": SETUP_HINT, "error": type(exc).__name__}},
        )
    except Exception as exc:
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "type": type(exc).__name__},
        )
