"""
Application principale FastAPI.

Ce module assemble les composants du service de suppression de comptes : middlewares, routes,
métriques et gestion des erreurs.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, métriques)
- Monter les routers (santé, métriques, et admin si un secret est configuré)
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI

from drive_backend.api.routes_admin import router as admin_router
from drive_backend.api.routes_health import router as health_router
from drive_backend.apigw.errors import register_error_handlers
from drive_backend.app.metrics import PrometheusMiddleware, metrics_router
from drive_backend.core.container import Container, container as default_container
from drive_backend.core.logging import setup_logging
from drive_backend.middlewares.request_id import RequestIDMiddleware

log = structlog.get_logger(__name__)


def create_app(container: Container | None = None) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog)
    - Lit les paramètres d'exécution depuis le conteneur
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes de santé, métriques et, si `ADMIN_ENDPOINT_SECRET` est défini, d'admin
    """
    setup_logging()
    container = container or default_container
    settings = container.settings
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.state.container = container
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    if settings.ADMIN_ENDPOINT_SECRET:
        app.include_router(admin_router)
    else:
        log.info("admin_routes_disabled_no_secret")
    return app


app = create_app()
