"""
Métriques Prometheus pour l'application.

Ce module définit les métriques Prometheus du service de suppression de comptes et expose
l'endpoint `/metrics` ainsi qu'un middleware de mesure des requêtes HTTP.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Suppression de comptes
USER_DELETION_RUNS = Counter(
    "user_deletion_runs_total",
    "User deletion runs by resulting status",
    ["status"],
)
USER_DELETION_LATENCY = Histogram(
    "user_deletion_latency_seconds",
    "Latency of a full user deletion run",
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0],
)
USER_DELETION_PENDING = Gauge(
    "user_deletion_pending",
    "Users flagged for deletion with an outstanding process epoch",
)
DELETION_ENTITIES = Counter(
    "deletion_entities_total",
    "Per-entity removals attempted during user deletion",
    ["kind", "result"],
)
DELETION_BLOBS = Counter(
    "deletion_blobs_total",
    "Storage paths removals attempted during user deletion",
    ["result"],
)

# Idempotence des tâches Celery
WORKER_IDEMPOTENCY_ATTEMPTS_TOTAL = Counter(
    "worker_idempotency_attempts_total",
    "Idempotency attempts at worker",
    ["task", "result"],
)
WORKER_IDEMPOTENCY_STATE_TOTAL = Counter(
    "worker_idempotency_state_total",
    "Idempotency state transitions",
    ["task", "state"],
)


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte les métriques de comptage des requêtes et de latence par route pour l'exposition
    Prometheus.
    """

    async def dispatch(self, request: Request, call_next):
        """Traite une requête HTTP et collecte les métriques."""
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = request.scope.get("path", "unknown")
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
