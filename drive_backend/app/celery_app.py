"""
Module: celery_app.

But: Initialiser l'instance Celery du service et charger la config runtime.

Notes:
- Aucun secret loggé.
- Le balayage périodique des suppressions en cours est planifié via beat.
"""

from celery import Celery

from drive_backend.core.container import container

celery_app = Celery(
    "drive_erasure",
    broker=container.settings.CELERY_BROKER_URL,
    backend=container.settings.CELERY_RESULT_BACKEND,
    include=["drive_backend.tasks.deletion_tasks"],
)
# Load configuration from module (retries, timeouts, acks, beat)
celery_app.config_from_object("drive_backend.app.celeryconfig")
celery_app.conf.task_routes = {"drive_backend.tasks.*": {"queue": "default"}}

__all__ = ["celery_app"]
