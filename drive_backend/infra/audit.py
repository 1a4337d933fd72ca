"""
Journal d'audit des suppressions de comptes (RGPD: droit à l'oubli).

Chaque exécution de suppression ajoute une ligne JSON au fichier `user_deletion.log` du dossier
d'audit. L'écriture est best-effort: un échec ne modifie jamais le résultat de la suppression.
"""

from __future__ import annotations

import contextlib
import getpass
import json
import os
import time

AUDIT_FILENAME = "user_deletion.log"
MAX_AUDIT_BYTES = 10 * 1024 * 1024


def _current_actor() -> str:
    try:
        return os.getenv("DELETION_ACTOR") or getpass.getuser() or "service"
    except Exception:  # pragma: no cover
        return "service"


class DeletionAuditLog:
    """Audit trail append-only au format JSON lines, avec rotation simple."""

    def __init__(self, audit_dir: str = os.path.join("artifacts", "audit")) -> None:
        self.audit_dir = audit_dir

    @property
    def path(self) -> str:
        return os.path.join(self.audit_dir, AUDIT_FILENAME)

    def record(
        self,
        user_id: str,
        action: str,
        status: str,
        error: str | None = None,
    ) -> None:
        """Ajoute un enregistrement `{ts, user_id, actor, action, status, error}`."""
        rec = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "user_id": user_id,
            "actor": _current_actor(),
            "action": action,
            "status": status,
            "error": error,
        }
        path = self.path
        with contextlib.suppress(Exception):
            os.makedirs(self.audit_dir, exist_ok=True)
            # rotate if >10MB best-effort
            if os.path.exists(path) and os.path.getsize(path) > MAX_AUDIT_BYTES:
                os.replace(path, path + ".1")
        with contextlib.suppress(Exception):
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(rec) + "\n")
