"""Configuration centralisée Celery pour les tâches de suppression.

Ce module définit la configuration globale de Celery incluant les politiques de retry, timeouts,
limites de connexion au broker et le planning du balayage des suppressions en cours.
"""

# ============================================================
# Module : drive_backend/app/celeryconfig.py
# Objet  : Configuration centralisée Celery (retries, timeouts, beat).
# ============================================================

from __future__ import annotations

# Retries & acks
task_acks_late = True
task_reject_on_worker_lost = True
worker_prefetch_multiplier = 1
task_time_limit = 1800  # secondes, une suppression complète peut être longue
broker_pool_limit = 10

# Politique de retry par défaut (à spécialiser par tâche)
max_retries = 5
retry_backoff = True
retry_backoff_max = 60  # secondes

# Reprise des suppressions interrompues
beat_schedule = {
    "sweep-pending-deletions": {
        "task": "drive_backend.tasks.sweep_pending_deletions",
        "schedule": 900.0,
    },
}
