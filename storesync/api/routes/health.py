"""
Health check route.
"""

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(request: Request):
    """Report whether the database answers SELECT 1."""
    database = getattr(request.app.state, "database", None)
    database_ok = bool(database is not None and database.is_open and database.ping())
    return {
        "status": "healthy" if database_ok else "unhealthy",
        "database": database_ok,
    }
