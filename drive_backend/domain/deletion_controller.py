"""
Orchestration de la suppression d'un compte utilisateur et de toutes ses données.

L'appel est conçu pour être répété jusqu'au succès: il résiste aux appels concurrents (travail
redondant mais convergent) et à une interruption en cours de route (timeout), la reprise se faisant
au prochain appel.

Phases:
- Marquage du compte (deleted=True, anonymisation, epoch de suppression si non terminé)
- Parcours post-ordre de l'arborescence `user_<id>`:
    - fichiers: blobs, puis `StoredFile`, puis `FileVersion`, entrée de recherche, puis le noeud
    - dossiers: supprimés seulement si tous les enfants l'ont été
- Balayage des entités égarées (créateur, propriétaire, rattachements)
- Remise à zéro de `delete_process_started_epoch`: unique point de validation
"""

from __future__ import annotations

import contextlib
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

import structlog

from drive_backend.app.metrics import (
    USER_DELETION_LATENCY,
    USER_DELETION_PENDING,
    USER_DELETION_RUNS,
)
from drive_backend.domain.context import DeletionContext
from drive_backend.domain.deleter import MultiStoreDeleter
from drive_backend.domain.entities import DriveItem, User, user_root_key
from drive_backend.domain.stray_scanner import StrayEntityScanner
from drive_backend.domain.tree_walker import DirectoryTreeWalker

DeletionStatus = Literal["failed", "deleting", "done"]

ANONYMIZED_EMAIL_DOMAIN = "deleted.invalid"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class DeletionOutcome:
    """Résultat d'un appel de suppression ou de marquage."""

    status: DeletionStatus
    user_id: str

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status, "userId": self.user_id}


class DeletionStateController:
    """Pilote les phases de suppression et détient le marqueur de progression durable."""

    def __init__(
        self,
        ctx: DeletionContext,
        audit: Any = None,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self.ctx = ctx
        self.audit = audit
        self.clock = clock
        self._log = structlog.get_logger(__name__)

    def mark_user_deleted(self, user_id: str) -> User | None:
        """Marque et anonymise le compte; idempotent. Retourne None si l'utilisateur est inconnu.

        L'epoch n'est posé que si le compte n'a pas déjà été entièrement supprimé
        (deleted=True et epoch=0).
        """
        user = self.ctx.users.find_one({"id": user_id})
        if user is None:
            return None
        completed = user.deleted and user.delete_process_started_epoch == 0
        user.deleted = True
        user.email = f"{user.id}@{ANONYMIZED_EMAIL_DOMAIN}"
        user.first_name = ""
        user.last_name = ""
        if not completed and user.delete_process_started_epoch <= 0:
            user.delete_process_started_epoch = self.clock()
        return self.ctx.users.save(user)

    def delete_user(self, user_id: str, delete_data: bool = True) -> DeletionOutcome:
        """Démarre ou poursuit la suppression d'un utilisateur. Ne lève jamais.

        Args:
            user_id: Identifiant de l'utilisateur.
            delete_data: False pour seulement marquer le compte (la suppression des données est
                différée à un appel ultérieur).

        Returns:
            DeletionOutcome: "done" si tout est supprimé, "deleting" si seulement marqué,
            "failed" sinon (à rappeler plus tard).
        """
        log = self._log.bind(admin_op="delete_user", user=user_id, delete_data=delete_data)
        start = time.perf_counter()
        status: DeletionStatus = "failed"
        error: str | None = None
        try:
            user = self.mark_user_deleted(user_id)
            if user is None:
                log.warning("user_not_found")
            elif not delete_data:
                status = "deleting" if user.delete_process_started_epoch > 0 else "done"
            elif self._delete_user_data(user, log):
                status = "done"
        except Exception as exc:
            log.error("user_deletion_error", exc_info=True)
            error = repr(exc)
            status = "failed"
        USER_DELETION_RUNS.labels(status=status).inc()
        if delete_data:
            USER_DELETION_LATENCY.observe(time.perf_counter() - start)
        self._record("delete_user" if delete_data else "mark_user", user_id, status, error)
        return DeletionOutcome(status=status, user_id=user_id)

    def mark_to_delete(self, user_id: str) -> DeletionOutcome:
        """Force la déconnexion puis marque le compte, sans supprimer de données."""
        try:
            self.ctx.sessions.force_logout(user_id)
        except Exception as exc:
            self._log.error("force_logout_error", user=user_id, error=repr(exc))
            self._record("mark_to_delete", user_id, "failed", repr(exc))
            return DeletionOutcome(status="failed", user_id=user_id)
        return self.delete_user(user_id, delete_data=False)

    def list_pending_deletions(self) -> list[tuple[str, int]]:
        """Liste `(user_id, epoch)` des suppressions en cours, par epoch croissant."""
        users = self.ctx.users.find({"delete_process_started_epoch__gt": 0})
        pending = sorted(
            ((u.id, u.delete_process_started_epoch) for u in users),
            key=lambda p: (p[1], p[0]),
        )
        USER_DELETION_PENDING.set(len(pending))
        return pending

    def _delete_user_data(self, user: User, log: Any) -> bool:
        deleter = MultiStoreDeleter(self.ctx, log=log)

        def _visit(
            item: DriveItem, children: list[bool] | None, _ancestors: list[DriveItem]
        ) -> bool:
            return deleter.delete_tree_node(item, children)

        results = DirectoryTreeWalker(self.ctx.items).walk(user_root_key(user.id), _visit)
        if not all(results):
            log.error("tree_deletion_incomplete", failed=sum(1 for r in results if not r))
            return False

        if not StrayEntityScanner(self.ctx, deleter, log=log).run(user.id):
            return False

        try:
            self.ctx.search.users.remove([user])
        except Exception as exc:
            log.error("user_search_entry_delete_error", error=repr(exc))

        latest = self.ctx.users.find_one({"id": user.id}) or user
        log.info("user_deletion_complete_zeroing_epoch")
        latest.delete_process_started_epoch = 0
        self.ctx.users.save(latest)
        return True

    def _record(self, action: str, user_id: str, status: str, error: str | None) -> None:
        if self.audit is None:
            return
        with contextlib.suppress(Exception):
            self.audit.record(user_id=user_id, action=action, status=status, error=error)
