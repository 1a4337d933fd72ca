"""Primitives de suppression atomiques par entité sur les trois magasins.

Chaque primitive retourne un booléen de succès et ne laisse jamais remonter d'exception:
- une ligne déjà absente compte comme un succès (idempotence),
- une erreur de magasin est journalisée et convertie en False,
- la suppression de l'entrée de recherche est toujours best-effort.

Ordre imposé: blobs avant l'enregistrement `StoredFile`, fichier avant la `FileVersion`, toutes les
versions avant le `DriveItem`.

@warn Aucune règle métier (partage, synchronisation) n'est appliquée: à réserver à la suppression
définitive d'un compte.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Literal

import structlog

from drive_backend.app.metrics import DELETION_BLOBS, DELETION_ENTITIES
from drive_backend.domain.batching import BatchExecutor
from drive_backend.domain.context import DeletionContext, EntityRepository
from drive_backend.domain.entities import DriveItem, FileVersion, StoredFile
from drive_backend.domain.paths import file_storage_prefix
from drive_backend.domain.version_assets import VersionAssetResolver


class MultiStoreDeleter:
    """Suppression d'entités sur le magasin de métadonnées, l'index et le stockage objet."""

    def __init__(
        self,
        ctx: DeletionContext,
        resolver: VersionAssetResolver | None = None,
        log: Any = None,
    ) -> None:
        self.ctx = ctx
        self.resolver = resolver or VersionAssetResolver(ctx)
        self._log = log or structlog.get_logger(__name__).bind(component="multi_store_deleter")

    def delete_storage_paths(self, paths: Sequence[str], batch_size: int | None = None) -> bool:
        """Supprime les chemins par lots; True si tous ont réussi (ou liste vide)."""

        def _remove(path: str) -> bool:
            try:
                ok = bool(self.ctx.storage.remove(path))
            except Exception as exc:
                self._log.error("storage_path_delete_error", path=path, error=repr(exc))
                ok = False
            DELETION_BLOBS.labels(result="ok" if ok else "error").inc()
            return ok

        executor = BatchExecutor(batch_size or self.ctx.batch_size)
        return executor.run_all_true(list(paths), _remove)

    def safe_remove(self, repo: EntityRepository[Any], entity: Any) -> bool:
        """Supprime une ligne; False si le magasin lève, True (journalisé) si elle était absente."""
        table = getattr(repo, "table", type(entity).__name__)
        try:
            removed = repo.remove(entity)
        except Exception as exc:
            self._log.error(
                "entity_delete_error",
                table=table,
                entity=getattr(entity, "id", None),
                error=repr(exc),
            )
            DELETION_ENTITIES.labels(kind=table, result="error").inc()
            return False
        if not removed:
            self._log.warning(
                "entity_delete_no_rows", table=table, entity=getattr(entity, "id", None)
            )
            DELETION_ENTITIES.labels(kind=table, result="absent").inc()
        else:
            DELETION_ENTITIES.labels(kind=table, result="deleted").inc()
        return True

    def delete_file(self, file: StoredFile) -> bool:
        """Supprime tous les blobs d'un fichier puis, si tout a réussi, son enregistrement."""
        try:
            paths = self.ctx.storage.enumerate_paths_for_file(file_storage_prefix(file))
            if not paths:
                self._log.warning("file_without_storage_paths", file=file.id)
            elif not self.delete_storage_paths(paths):
                self._log.error("file_storage_paths_delete_failed", file=file.id, paths=len(paths))
                return False
            return self.safe_remove(self.ctx.files, file)
        except Exception as exc:
            self._log.error("file_delete_error", file=file.id, error=repr(exc))
            return False

    def delete_version(
        self,
        version: FileVersion,
        file: StoredFile | None | Literal[False] = None,
    ) -> bool:
        """Supprime une version et, sauf si `file is False`, le fichier associé.

        Avec `file=None`, le fichier est résolu depuis la version; un fichier déjà absent n'empêche
        pas la suppression de la version.
        """
        try:
            if file is not False:
                target = file or self.resolver.find_file_of_version(version)
                if target is not None and not self.delete_file(target):
                    self._log.error(
                        "version_file_delete_failed", version=version.id, file=target.id
                    )
                    return False
            return self.safe_remove(self.ctx.versions, version)
        except Exception as exc:
            self._log.error("version_delete_error", version=version.id, error=repr(exc))
            return False

    def delete_item_fully(self, item: DriveItem) -> bool:
        """Supprime un noeud avec ses versions, fichiers, blobs et son entrée de recherche.

        Les fichiers ne sont pas traités pour un dossier. L'enregistrement du noeud n'est supprimé
        que si toutes les versions l'ont été.

        @warn Ne vérifie pas que le noeud n'a plus d'enfants.

        Returns:
            bool: True si et seulement si l'enregistrement du noeud a été supprimé.
        """
        try:
            can_delete_item = True
            for assets in self.resolver.resolve_versions(item, include_storage_paths=False):
                file = False if item.is_directory else assets.file
                if not self.delete_version(assets.version, file):
                    can_delete_item = False
            try:
                self.ctx.search.items.remove([item])
            except Exception as exc:
                # L'entrée orpheline est filtrée par l'absence du noeud: on continue
                self._log.error("item_search_entry_delete_error", item=item.id, error=repr(exc))
            if not can_delete_item:
                self._log.error("item_kept_versions_failed", item=item.id)
                return False
            return self.safe_remove(self.ctx.items, item)
        except Exception as exc:
            self._log.error("item_delete_error", item=item.id, error=repr(exc))
            return False

    def delete_tree_node(self, item: DriveItem, child_results: list[bool] | None) -> bool:
        """Supprime un noeud visité en post-ordre.

        Un dossier n'est supprimé que si tous ses enfants l'ont été et qu'aucune ligne enfant ne
        subsiste dans le magasin; sinon il est conservé et le noeud compte comme un échec.
        """
        try:
            if child_results is not None and not all(child_results):
                self._log.error("directory_kept_child_failed", item=item.id)
                return False
            if item.is_directory:
                if not child_results:
                    self._log.warning("deleting_empty_directory", item=item.id)
                remaining = self.ctx.items.find({"parent_id": item.id})
                if remaining:
                    self._log.error(
                        "directory_kept_children_remaining", item=item.id, count=len(remaining)
                    )
                    return False
            return self.delete_item_fully(item)
        except Exception as exc:
            self._log.error("tree_item_delete_error", item=item.id, error=repr(exc))
            return False
