"""Balayage des entités « égarées » d'un utilisateur.

Après le parcours de l'arborescence de l'utilisateur, certaines données le référencent encore sans
être atteignables depuis sa racine (noeuds créés dans le drive d'un autre, versions ajoutées à un
document partagé, fichiers orphelins, rattachements). Chaque catégorie interroge directement le
magasin concerné et supprime ce qu'elle trouve avec les primitives de `MultiStoreDeleter`.

Les catégories s'exécutent dans un ordre fixe; un échec dans une catégorie arrête la séquence pour
cet appel. Un nouvel appel redécouvre exactement ce qui reste.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from drive_backend.domain.context import DeletionContext
from drive_backend.domain.deleter import MultiStoreDeleter
from drive_backend.domain.entities import DriveItem
from drive_backend.domain.paths import user_storage_prefix
from drive_backend.domain.tree_walker import DirectoryTreeWalker


class StrayEntityScanner:
    """Suppression par champ de propriété (créateur/propriétaire/utilisateur)."""

    def __init__(
        self, ctx: DeletionContext, deleter: MultiStoreDeleter, log: Any = None
    ) -> None:
        self.ctx = ctx
        self.deleter = deleter
        self._log = log or structlog.get_logger(__name__).bind(component="stray_scanner")

    def phases(self) -> list[tuple[str, Callable[[str], bool]]]:
        """Catégories dans leur ordre d'exécution."""
        phases: list[tuple[str, Callable[[str], bool]]] = [
            ("items_by_creator", self.delete_items_by_creator),
            ("versions_by_creator", self.delete_versions_by_creator),
        ]
        if self.ctx.scan_files_by_owner:
            phases.append(("files_by_owner", self.delete_files_by_owner))
        phases.extend(
            [
                ("company_memberships", self.delete_company_memberships),
                ("external_identities", self.delete_external_identities),
            ]
        )
        return phases

    def run(self, user_id: str) -> bool:
        """Exécute toutes les catégories; False dès qu'une catégorie échoue."""
        for name, phase in self.phases():
            try:
                ok = phase(user_id)
            except Exception as exc:
                self._log.error("stray_phase_error", phase=name, error=repr(exc))
                ok = False
            if not ok:
                self._log.error("stray_phase_failed", phase=name)
                return False
        return True

    def delete_items_by_creator(self, user_id: str) -> bool:
        """Supprime les noeuds créés par l'utilisateur hors de son arborescence.

        Un dossier égaré est traité avec son sous-arbre en post-ordre: les descendants de
        l'utilisateur sont supprimés d'abord, ceux d'autres créateurs sont conservés, et le dossier
        n'est supprimé que s'il ne lui reste aucun enfant.
        """
        items = self.ctx.items.find({"creator": user_id})
        self._log.info("stray_items_by_creator", count=len(items))
        ok = True
        for item in items:
            # déjà supprimé avec le sous-arbre d'un dossier égaré traité plus tôt
            if self.ctx.items.find_one({"id": item.id}) is None:
                continue
            if not self._delete_stray_item(item, user_id):
                ok = False
        return ok

    def _delete_stray_item(self, item: DriveItem, user_id: str) -> bool:
        if not item.is_directory:
            return self.deleter.delete_tree_node(item, None)

        def _visit(
            child: DriveItem, children: list[bool] | None, _ancestors: list[DriveItem]
        ) -> bool:
            if child.creator != user_id:
                self._log.warning(
                    "stray_foreign_child_kept", item=child.id, creator=child.creator
                )
                return False
            return self.deleter.delete_tree_node(child, children)

        results = DirectoryTreeWalker(self.ctx.items).walk(item.id, _visit)
        return self.deleter.delete_tree_node(item, results)

    def delete_versions_by_creator(self, user_id: str) -> bool:
        versions = self.ctx.versions.find({"creator_id": user_id})
        self._log.info("stray_versions_by_creator", count=len(versions))
        ok = True
        for version in versions:
            if not self.deleter.delete_version(version):
                ok = False
        return ok

    def delete_files_by_owner(self, user_id: str) -> bool:
        files = self.ctx.files.find({"user_id": user_id})
        self._log.info("stray_files_by_owner", count=len(files))
        ok = True
        for file in files:
            if not self.deleter.delete_file(file):
                ok = False
        return ok

    def delete_company_memberships(self, user_id: str) -> bool:
        """Supprime les blobs restants sous le préfixe de l'utilisateur, puis le rattachement."""
        memberships = self.ctx.company_users.find({"user_id": user_id})
        self._log.info("stray_company_memberships", count=len(memberships))
        ok = True
        for membership in memberships:
            try:
                paths = self.ctx.storage.enumerate_paths_for_file(
                    user_storage_prefix(user_id, membership.group_id)
                )
            except Exception as exc:
                self._log.error(
                    "company_storage_enumeration_error",
                    company=membership.group_id,
                    error=repr(exc),
                )
                ok = False
                continue
            if not self.deleter.delete_storage_paths(paths):
                ok = False
            elif not self.deleter.safe_remove(self.ctx.company_users, membership):
                self._log.warning("company_membership_kept", company=membership.group_id)
                ok = False
        return ok

    def delete_external_identities(self, user_id: str) -> bool:
        externals = self.ctx.external_users.find({"user_id": user_id})
        self._log.info("stray_external_identities", count=len(externals))
        ok = True
        for external in externals:
            if not self.deleter.safe_remove(self.ctx.external_users, external):
                ok = False
        return ok
