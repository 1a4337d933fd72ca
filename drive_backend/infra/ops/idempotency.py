"""Task idempotency helpers (Redis or in-memory).

- IdempotencyStore: simple `acquire(key, ttl)` to deduplicate task execution,
  plus `set_state` / `release` to track and reopen a key.

Idempotency key rule (recommended):
    task:{name}:{param_significant}

Use `make_idem_key("delete_user", user_id)` to compose keys consistently.

Redis backend if `REDIS_URL` is set; otherwise an in-memory store suitable for
unit tests and single-process runs.
"""

from __future__ import annotations

import contextlib
import os
import threading
import time
from dataclasses import dataclass, field

import redis
import structlog

from drive_backend.app.metrics import (
    WORKER_IDEMPOTENCY_ATTEMPTS_TOTAL,
    WORKER_IDEMPOTENCY_STATE_TOTAL,
)

log = structlog.get_logger(__name__)


def make_idem_key(task: str, *parts: str) -> str:
    """Compose a stable idempotency key following `task:{name}:{param}` rule."""
    safe_parts = [str(p).replace("\n", " ").replace("\r", " ") for p in parts]
    suffix = ":".join(safe_parts) if safe_parts else ""
    return f"task:{task}:{suffix}" if suffix else f"task:{task}"


class _InMemoryKV:
    def __init__(self) -> None:
        self._exp: dict[str, float] = {}
        self._vals: dict[str, str] = {}
        self._lock = threading.Lock()

    def _purge(self, key: str, now: float) -> None:
        exp = self._exp.get(key)
        if exp is not None and exp <= now:
            self._exp.pop(key, None)
            self._vals.pop(key, None)

    def setnx(self, key: str, value: str, ex: int) -> bool:
        now = time.time()
        with self._lock:
            self._purge(key, now)
            if key in self._vals:
                return False
            self._vals[key] = value
            self._exp[key] = now + ex
            return True

    def set(self, key: str, value: str, ex: int | None = None) -> None:
        with self._lock:
            self._vals[key] = value
            if ex:
                self._exp[key] = time.time() + int(ex)

    def get(self, key: str) -> str | None:
        with self._lock:
            self._purge(key, time.time())
            return self._vals.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._vals.pop(key, None)
            self._exp.pop(key, None)


def _redis_client():  # pragma: no cover - smoke path
    url = os.getenv("REDIS_URL")
    if not url:
        return None
    try:
        return redis.Redis.from_url(url, decode_responses=True)
    except Exception:
        log.warning("idempotency_redis_unavailable")
        return None


@dataclass
class IdempotencyStore:
    """Store pour l'idempotence des tâches avec TTL."""

    ttl_seconds: int = 300
    client: object | None = field(default=None)

    def __post_init__(self) -> None:
        """Initialise le client Redis ou fallback en mémoire."""
        if self.client is None:
            self.client = _redis_client() or _InMemoryKV()

    def acquire(self, key: str, ttl: int | None = None) -> bool:
        """Acquiert une clé d'idempotence avec TTL (verrou in_progress)."""
        ttl = int(ttl or self.ttl_seconds)
        if isinstance(self.client, _InMemoryKV):
            return self.client.setnx(key, "1", ex=ttl)
        # Redis client: un broker indisponible ne doit pas bloquer la tâche
        try:
            ok = self.client.set(name=key, value="1", nx=True, ex=ttl)  # type: ignore[attr-defined]
            return bool(ok)
        except Exception:
            log.warning("idempotency_acquire_failed", key=key)
            return True

    def set_state(self, key: str, state: str, ttl: int | None = None) -> None:
        """Enregistre un état (in_progress/succeeded/failed) avec TTL."""
        ttl = int(ttl or self.ttl_seconds)
        with contextlib.suppress(Exception):
            self.client.set(key, state, ex=ttl)  # type: ignore[attr-defined]

    def get_state(self, key: str) -> str | None:
        """Retourne l'état enregistré pour la clé, ou None."""
        try:
            return self.client.get(key)  # type: ignore[attr-defined]
        except Exception:
            return None

    def release(self, key: str) -> None:
        """Libère la clé pour autoriser une nouvelle exécution avant expiration."""
        with contextlib.suppress(Exception):
            self.client.delete(key)  # type: ignore[attr-defined]


def record_attempt(task_name: str, result: str) -> None:
    """Compte une tentative (allowed/deduped) pour la tâche."""
    WORKER_IDEMPOTENCY_ATTEMPTS_TOTAL.labels(task=task_name, result=result).inc()


def record_state(task_name: str, state: str) -> None:
    """Compte une transition d'état pour la tâche."""
    WORKER_IDEMPOTENCY_STATE_TOTAL.labels(task=task_name, state=state).inc()


# Module singleton
idempotency_store = IdempotencyStore()
