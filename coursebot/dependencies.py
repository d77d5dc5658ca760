"""
Shared FastAPI dependencies.
"""

from fastapi import HTTPException, Request

SETUP_HINT = (
    "Database connection required. Check DATABASE_URL in your .env file "
    "and run `coursebot-setup-db` to create the tables."
)


async def require_database(request: Request):
    """Refuse course/chat requests when the database was unreachable at startup."""
    error = getattr(request.app.state, "database_error", None)
    if error:
        raise HTTPException(status_code=503, detail={"message": SETUP_HINT, "error": error})
