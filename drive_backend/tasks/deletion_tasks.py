"""
Tâches Celery pour la suppression des comptes.

`delete_user` exécute une suppression complète derrière une garde d'idempotence;
`sweep_pending_deletions` reprend les suppressions dont le marqueur de progression est encore posé.
"""

from __future__ import annotations

import structlog

from drive_backend.app.celery_app import celery_app
from drive_backend.core.container import container
from drive_backend.infra.ops.idempotency import (
    idempotency_store,
    make_idem_key,
    record_attempt,
    record_state,
)

log = structlog.get_logger(__name__)


@celery_app.task(name="drive_backend.tasks.delete_user")
def delete_user_task(user_id: str) -> str:
    # Idempotency: avoid concurrent runs for the same user within TTL window
    ttl = container.settings.DELETION_IDEMPOTENCY_TTL
    idem_key = make_idem_key("delete_user", user_id)
    if not idempotency_store.acquire(idem_key, ttl=ttl):
        record_attempt("delete_user", "deduped")
        return "duplicate"
    record_attempt("delete_user", "allowed")
    status = "failed"
    try:
        outcome = container.build_controller().delete_user(user_id, delete_data=True)
        status = outcome.status
    finally:
        idempotency_store.set_state(f"{idem_key}:state", status, ttl)
        record_state("delete_user", status)
        if status != "done":
            # le prochain balayage doit pouvoir relancer sans attendre l'expiration
            idempotency_store.release(idem_key)
    return status


@celery_app.task(name="drive_backend.tasks.sweep_pending_deletions")
def sweep_pending_deletions_task(limit: int | None = None) -> int:
    """Enfile `delete_user` pour chaque suppression en cours (par epoch croissant)."""
    limit = limit or container.settings.DELETION_SWEEP_LIMIT
    pending = container.build_controller().list_pending_deletions()[:limit]
    for user_id, _epoch in pending:
        delete_user_task.delay(user_id)
    log.info("deletion_sweep_enqueued", count=len(pending))
    return len(pending)
