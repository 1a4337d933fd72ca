"""
Repositories pour la gestion des données.

Ce module fournit des implémentations de repositories en mémoire (dev/tests) pour les entités drive,
ainsi que le magasin de sessions (mémoire ou Redis) utilisé pour forcer la déconnexion.
"""

import json
import time
from typing import Any, Generic, TypeVar

import redis
from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)

GT_SUFFIX = "__gt"


def matches(record: dict[str, Any], filters: dict[str, Any]) -> bool:
    """Évalue des filtres d'égalité (et `champ__gt`) sur un enregistrement."""
    for key, expected in filters.items():
        if key.endswith(GT_SUFFIX):
            value = record.get(key[: -len(GT_SUFFIX)])
            if value is None or not value > expected:
                return False
        elif record.get(key) != expected:
            return False
    return True


class InMemoryEntityRepo(Generic[M]):
    """
    Dépôt d'entités en mémoire (utilisé pour dev/tests).

    Stocke des copies des modèles dans un dict local, non persistant; les lectures renvoient aussi
    des copies pour se comporter comme un vrai magasin.
    """

    def __init__(self, table: str, model: type[M]):
        """Initialise une base mémoire vide pour la table donnée."""
        self.table = table
        self.model = model
        self._db: dict[str, dict[str, Any]] = {}

    def find(self, filters: dict[str, Any]) -> list[M]:
        """Retourne les entités correspondant aux filtres (ordre d'insertion)."""
        return [self.model(**r) for r in self._db.values() if matches(r, filters)]

    def find_one(self, filters: dict[str, Any]) -> M | None:
        """Retourne la première entité correspondante, ou None."""
        return next(iter(self.find(filters)), None)

    def save(self, entity: M) -> M:
        """Enregistre/écrase une entité et la renvoie."""
        self._db[entity.id] = entity.model_dump()  # type: ignore[attr-defined]
        return entity

    def remove(self, entity: M) -> bool:
        """Supprime une entité; False si elle était déjà absente."""
        return self._db.pop(entity.id, None) is not None  # type: ignore[attr-defined]


class InMemorySessionStore:
    """Sessions en mémoire: `user_id -> {session_id: payload}`."""

    def __init__(self):
        """Initialise un magasin vide."""
        self._sessions: dict[str, dict[str, dict[str, Any]]] = {}
        self.revoked: dict[str, float] = {}

    def create(self, user_id: str, session_id: str, payload: dict[str, Any] | None = None) -> None:
        """Ouvre une session pour un utilisateur."""
        self._sessions.setdefault(user_id, {})[session_id] = payload or {}

    def list_sessions(self, user_id: str) -> list[str]:
        """Liste les sessions ouvertes d'un utilisateur."""
        return list(self._sessions.get(user_id, {}))

    def force_logout(self, user_id: str) -> None:
        """Ferme toutes les sessions et mémorise l'instant de révocation."""
        self._sessions.pop(user_id, None)
        self.revoked[user_id] = time.time()


class RedisSessionStore:
    """Sessions via Redis (clés `session:{user_id}:{session_id}`, index par set)."""

    def __init__(self, url: str):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)

    @staticmethod
    def _index_key(user_id: str) -> str:
        return f"session:idx:{user_id}"

    def create(self, user_id: str, session_id: str, payload: dict[str, Any] | None = None) -> None:
        """Ouvre une session et l'indexe pour l'utilisateur."""
        pipe = self.client.pipeline()
        pipe.set(f"session:{user_id}:{session_id}", json.dumps(payload or {}))
        pipe.sadd(self._index_key(user_id), session_id)
        pipe.execute()

    def list_sessions(self, user_id: str) -> list[str]:
        """Liste les sessions ouvertes d'un utilisateur."""
        return sorted(self.client.smembers(self._index_key(user_id)) or [])

    def force_logout(self, user_id: str) -> None:
        """Supprime toutes les sessions et pose le marqueur de révocation `session:revoked:{id}`."""
        session_ids = self.client.smembers(self._index_key(user_id)) or set()
        pipe = self.client.pipeline()
        for sid in session_ids:
            pipe.delete(f"session:{user_id}:{sid}")
        pipe.delete(self._index_key(user_id))
        pipe.set(f"session:revoked:{user_id}", str(int(time.time())))
        pipe.execute()
