"""
Tests pour le journal d'audit des suppressions de comptes.

Ce module vérifie le format JSON lines, l'acteur enregistré, la rotation et le caractère
best-effort de l'écriture.
"""

from __future__ import annotations

import json

from drive_backend.infra import audit as audit_mod
from drive_backend.infra.audit import AUDIT_FILENAME, DeletionAuditLog


def test_audit_appends_json_lines(tmp_path, monkeypatch) -> None:
    """Chaque enregistrement est une ligne JSON complète."""
    monkeypatch.setenv("DELETION_ACTOR", "tester")
    log = DeletionAuditLog(str(tmp_path / "audit"))
    log.record(user_id="u1", action="delete_user", status="failed", error="boom")
    log.record(user_id="u1", action="delete_user", status="done")

    lines = (tmp_path / "audit" / AUDIT_FILENAME).read_text(encoding="utf-8").splitlines()
    recs = [json.loads(line) for line in lines]
    assert [r["status"] for r in recs] == ["failed", "done"]
    assert recs[0]["actor"] == "tester"
    assert recs[0]["error"] == "boom"
    assert recs[1]["error"] is None
    assert recs[1]["ts"].endswith("Z")


def test_audit_rotates_large_file(tmp_path, monkeypatch) -> None:
    """Au-delà de la taille maximale, le fichier courant passe en `.1`."""
    monkeypatch.setattr(audit_mod, "MAX_AUDIT_BYTES", 10)
    log = DeletionAuditLog(str(tmp_path))
    log.record(user_id="u1", action="delete_user", status="done")
    log.record(user_id="u2", action="delete_user", status="done")

    rotated = tmp_path / (AUDIT_FILENAME + ".1")
    assert json.loads(rotated.read_text(encoding="utf-8"))["user_id"] == "u1"
    current = tmp_path / AUDIT_FILENAME
    assert json.loads(current.read_text(encoding="utf-8"))["user_id"] == "u2"


def test_audit_never_raises(tmp_path) -> None:
    """Un dossier d'audit inutilisable n'interrompt pas l'appelant."""
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")
    DeletionAuditLog(str(blocker / "audit")).record(user_id="u1", action="x", status="done")
