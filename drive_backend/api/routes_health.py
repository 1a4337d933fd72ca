"""
Endpoint de santé pour vérifier la disponibilité de l'API et des backends.

Expose `/health` pour signaler l'état général de l'application et des magasins configurés.
"""

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    """Vérifie la disponibilité de l'API et les backends configurés."""
    container = request.app.state.container
    settings = container.settings
    return {
        "status": "ok",
        "storage": settings.STORAGE_BACKEND,
        "search": settings.SEARCH_BACKEND,
        "database": bool(settings.DATABASE_URL),
        "redis_url": bool(settings.REDIS_URL),
        "admin": bool(settings.ADMIN_ENDPOINT_SECRET),
    }
