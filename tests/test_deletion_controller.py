"""
Tests pour l'orchestration de la suppression d'un compte.

Couvre: idempotence, post-condition après "done", reprise après panne transitoire, ordre de
suppression des dossiers, marquage en deux temps, entités égarées, audit et métriques.
"""

from __future__ import annotations

import json

from prometheus_client import REGISTRY

from drive_backend.domain.deletion_controller import DeletionStateController
from drive_backend.domain.entities import DriveItem
from drive_backend.infra.audit import DeletionAuditLog
from tests.fakes import (
    RecordingRepo,
    add_dir,
    add_external,
    add_file,
    add_membership,
    remaining_for,
    root,
    seed_user,
)


def _populate(ctx) -> None:
    seed_user(ctx, "u1")
    add_dir(ctx, "dirA", root())
    add_file(ctx, "fileA", "dirA", versions=2)
    add_dir(ctx, "dirB", "dirA")
    add_file(ctx, "fileB", "dirB", blobs=("chunk1", "thumbnails/0.png"))
    add_file(ctx, "top", root())
    add_dir(ctx, "emptyDir", root())
    add_membership(ctx, "u1", "c1")
    add_external(ctx, "u1")


def test_unknown_user_fails(ctx) -> None:
    """Utilisateur inconnu: "failed", sans exception."""
    outcome = DeletionStateController(ctx).delete_user("ghost")
    assert outcome.to_dict() == {"status": "failed", "userId": "ghost"}


def test_full_deletion_post_condition(ctx) -> None:
    """Après "done": plus aucune ligne ne référence l'utilisateur, epoch à 0, compte anonymisé."""
    _populate(ctx)
    outcome = DeletionStateController(ctx).delete_user("u1")

    assert outcome.status == "done"
    assert remaining_for(ctx, "u1") == {
        "items": 0,
        "versions": 0,
        "files": 0,
        "company_users": 0,
        "external_users": 0,
    }
    assert ctx.items.find({"parent_id": root()}) == []
    assert ctx.storage.enumerate_paths_for_file("files") == []
    assert ctx.search.items.search({"creator": "u1"}) == []
    assert ctx.search.users.search({"id": "u1"}) == []
    user = ctx.users.find_one({"id": "u1"})
    assert user.deleted is True
    assert user.delete_process_started_epoch == 0
    assert user.email == "u1@deleted.invalid"
    assert (user.first_name, user.last_name) == ("", "")


def test_second_run_is_a_no_op(ctx) -> None:
    """Deux appels consécutifs renvoient "done"; le second ne supprime rien."""
    _populate(ctx)
    controller = DeletionStateController(ctx)
    assert controller.delete_user("u1").status == "done"
    removed_before = list(ctx.storage.removed)

    assert controller.delete_user("u1").status == "done"
    assert ctx.storage.removed == removed_before
    assert ctx.users.find_one({"id": "u1"}).delete_process_started_epoch == 0


def test_resume_after_transient_storage_failure(ctx) -> None:
    """Une panne sur un fichier fait échouer le passage; la reprise ne retouche pas les autres."""
    seed_user(ctx, "u1")
    add_dir(ctx, "dir", root())
    for n in range(4):
        add_file(ctx, f"f{n}", "dir")
    ctx.storage.fail_paths.add("files/c1/u1/f2-f0/chunk1")
    controller = DeletionStateController(ctx, clock=lambda: 1_700_000_000_000)

    assert controller.delete_user("u1").status == "failed"
    assert ctx.users.find_one({"id": "u1"}).delete_process_started_epoch == 1_700_000_000_000
    assert [i.id for i in ctx.items.find({"parent_id": "dir"})] == ["f2"]
    assert ctx.items.find_one({"id": "dir"}) is not None
    assert controller.list_pending_deletions() == [("u1", 1_700_000_000_000)]

    ctx.storage.fail_paths.clear()
    already_removed = len(ctx.storage.removed)
    assert controller.delete_user("u1").status == "done"
    assert ctx.storage.removed[already_removed:] == ["files/c1/u1/f2-f0/chunk1"]
    assert ctx.items.find_one({"id": "dir"}) is None
    assert controller.list_pending_deletions() == []


def test_directories_removed_after_their_children(ctx) -> None:
    """dirA après fileA et dirB; dirB après fileB."""
    _populate(ctx)
    items = RecordingRepo(ctx.items)
    ctx.items = items

    assert DeletionStateController(ctx).delete_user("u1").status == "done"
    order = items.removed
    assert order.index("fileB") < order.index("dirB") < order.index("dirA")
    assert order.index("fileA") < order.index("dirA")


def test_directory_kept_when_a_child_fails(ctx) -> None:
    """Un enfant en échec bloque la suppression du dossier parent et de ses ancêtres."""
    _populate(ctx)
    items = RecordingRepo(ctx.items)
    items.fail_ids.add("fileB")
    ctx.items = items

    assert DeletionStateController(ctx).delete_user("u1").status == "failed"
    remaining = {i.id for i in ctx.items.find({"creator": "u1"})}
    assert {"fileB", "dirB", "dirA"} <= remaining
    assert "top" not in remaining
    assert "fileA" not in remaining
    # le balayage des entités égarées n'a pas eu lieu
    assert ctx.external_users.find({"user_id": "u1"}) != []


class _UploadDuringDeletion(RecordingRepo):
    """Dépôt de noeuds où un autre utilisateur dépose un fichier pendant la suppression."""

    def remove(self, entity):
        removed = super().remove(entity)
        if entity.id == "fileA":
            self.inner.save(
                DriveItem(id="late", parent_id="dirA", name="late", creator="u2", company_id="c1")
            )
        return removed


def test_directory_kept_when_a_child_row_remains(ctx) -> None:
    """Enfants visités tous supprimés mais une ligne enfant subsiste: dossier conservé, échec."""
    _populate(ctx)
    ctx.items = _UploadDuringDeletion(ctx.items)
    controller = DeletionStateController(ctx, clock=lambda: 7)

    assert controller.delete_user("u1").status == "failed"
    assert ctx.items.find_one({"id": "dirA"}) is not None
    assert ctx.items.find_one({"id": "late"}).parent_id == "dirA"
    assert ctx.users.find_one({"id": "u1"}).delete_process_started_epoch == 7
    assert controller.list_pending_deletions() == [("u1", 7)]


def test_stray_directory_with_foreign_child_fails_run(ctx) -> None:
    """Dossier égaré contenant le fichier d'un autre: conservé, statut "failed", epoch intact."""
    seed_user(ctx, "u1")
    add_dir(ctx, "sharedDir", root("u2"), creator="u1")
    add_file(ctx, "theirs", "sharedDir", creator="u2")
    controller = DeletionStateController(ctx, clock=lambda: 9)

    assert controller.delete_user("u1").status == "failed"
    assert ctx.items.find_one({"id": "sharedDir"}) is not None
    assert ctx.items.find_one({"id": "theirs"}).parent_id == "sharedDir"
    assert ctx.users.find_one({"id": "u1"}).delete_process_started_epoch == 9


def test_two_phase_marking(ctx) -> None:
    """Marquage seul: aucune donnée supprimée, compte en attente; puis suppression complète."""
    _populate(ctx)
    controller = DeletionStateController(ctx, clock=lambda: 42)

    assert controller.delete_user("u1", delete_data=False).status == "deleting"
    assert len(ctx.items.find({"creator": "u1"})) == 6
    assert len(ctx.files.find({"user_id": "u1"})) == 4
    assert controller.list_pending_deletions() == [("u1", 42)]
    assert ctx.users.find_one({"id": "u1"}).email == "u1@deleted.invalid"

    assert controller.delete_user("u1").status == "done"
    assert controller.list_pending_deletions() == []


def test_marking_keeps_first_epoch(ctx) -> None:
    """Un second marquage ne repousse pas l'epoch de la tentative en cours."""
    seed_user(ctx, "u1")
    ticks = iter([1000, 2000])
    controller = DeletionStateController(ctx, clock=lambda: next(ticks))
    controller.delete_user("u1", delete_data=False)
    controller.delete_user("u1", delete_data=False)
    assert ctx.users.find_one({"id": "u1"}).delete_process_started_epoch == 1000


def test_marking_completed_user_reports_done(ctx) -> None:
    """Un compte déjà entièrement supprimé n'est pas remis en attente."""
    seed_user(ctx, "u1")
    controller = DeletionStateController(ctx)
    assert controller.delete_user("u1").status == "done"
    assert controller.delete_user("u1", delete_data=False).status == "done"
    assert controller.list_pending_deletions() == []


def test_pending_sorted_by_epoch(ctx) -> None:
    """Les suppressions en cours sont listées par epoch croissant."""
    for user_id in ("a", "b", "c"):
        seed_user(ctx, user_id)
    ticks = iter([300, 100, 200])
    controller = DeletionStateController(ctx, clock=lambda: next(ticks))
    for user_id in ("a", "b", "c"):
        controller.delete_user(user_id, delete_data=False)
    assert controller.list_pending_deletions() == [("b", 100), ("c", 200), ("a", 300)]


def test_stray_items_in_other_drives_are_removed(ctx) -> None:
    """Un noeud créé par l'utilisateur sous la racine d'un autre est supprimé."""
    seed_user(ctx, "u1")
    seed_user(ctx, "u2")
    add_dir(ctx, "theirDir", root("u2"), creator="u2")
    add_file(ctx, "dropped", "theirDir", creator="u1")
    add_file(ctx, "theirFile", "theirDir", creator="u2")

    assert DeletionStateController(ctx).delete_user("u1").status == "done"
    assert ctx.items.find_one({"id": "dropped"}) is None
    assert ctx.items.find_one({"id": "theirFile"}) is not None
    assert ctx.items.find_one({"id": "theirDir"}) is not None


def test_store_error_never_escapes(ctx, monkeypatch) -> None:
    """Une erreur du magasin des utilisateurs donne "failed" sans lever."""
    seed_user(ctx, "u1")

    def _boom(_filters):
        raise ConnectionError("db down")

    monkeypatch.setattr(ctx.users, "find_one", _boom)
    assert DeletionStateController(ctx).delete_user("u1").status == "failed"


def test_mark_to_delete_revokes_sessions(ctx) -> None:
    """Déconnexion forcée puis marquage."""
    seed_user(ctx, "u1")
    ctx.sessions.create("u1", "s1")
    ctx.sessions.create("u1", "s2")

    outcome = DeletionStateController(ctx).mark_to_delete("u1")
    assert outcome.status == "deleting"
    assert ctx.sessions.list_sessions("u1") == []
    assert "u1" in ctx.sessions.revoked


def test_mark_to_delete_fails_when_logout_fails(ctx, monkeypatch) -> None:
    """Échec de la déconnexion: "failed" et compte non marqué."""
    seed_user(ctx, "u1")

    def _boom(_user_id):
        raise ConnectionError("redis down")

    monkeypatch.setattr(ctx.sessions, "force_logout", _boom)
    assert DeletionStateController(ctx).mark_to_delete("u1").status == "failed"
    assert ctx.users.find_one({"id": "u1"}).deleted is False


def test_audit_and_metrics(ctx, tmp_path) -> None:
    """Chaque appel ajoute une ligne d'audit et incrémente le compteur du statut."""
    seed_user(ctx, "u1")
    audit = DeletionAuditLog(str(tmp_path / "audit"))
    before = REGISTRY.get_sample_value("user_deletion_runs_total", {"status": "done"}) or 0.0

    controller = DeletionStateController(ctx, audit=audit)
    controller.delete_user("u1", delete_data=False)
    controller.delete_user("u1")

    log_file = tmp_path / "audit" / "user_deletion.log"
    lines = [json.loads(x) for x in log_file.read_text(encoding="utf-8").splitlines()]
    assert [(r["action"], r["status"]) for r in lines] == [
        ("mark_user", "deleting"),
        ("delete_user", "done"),
    ]
    assert lines[0]["actor"] == "tester"
    after = REGISTRY.get_sample_value("user_deletion_runs_total", {"status": "done"})
    assert after == before + 1
