"""Résolution des versions d'un noeud vers leurs fichiers et chemins de stockage."""

from __future__ import annotations

import structlog

from drive_backend.domain.context import DeletionContext
from drive_backend.domain.entities import (
    DriveItem,
    FileVersion,
    StoredFile,
    VersionAssets,
)
from drive_backend.domain.paths import file_storage_prefix


class VersionAssetResolver:
    """Développe un noeud en `VersionAssets` (version, fichier, chemins)."""

    def __init__(self, ctx: DeletionContext) -> None:
        self.ctx = ctx
        self._log = structlog.get_logger(__name__).bind(component="version_assets")

    def find_file_of_version(self, version: FileVersion) -> StoredFile | None:
        """Retourne le fichier référencé par la version (None si absent). Peut lever."""
        if not version.file_id:
            return None
        return self.ctx.files.find_one({"id": version.file_id})

    def resolve_versions(
        self, item: DriveItem, include_storage_paths: bool = False
    ) -> list[VersionAssets]:
        """Liste les versions du noeud, triées par date d'ajout puis identifiant.

        Un échec de résolution d'un fichier est journalisé; l'entrée correspondante est retournée
        sans fichier et la résolution des autres versions continue.
        """
        versions = sorted(
            self.ctx.versions.find({"drive_item_id": item.id}),
            key=lambda v: (v.date_added, v.id),
        )
        resolved: list[VersionAssets] = []
        for version in versions:
            assets = VersionAssets(version=version)
            try:
                assets.file = self.find_file_of_version(version)
                if include_storage_paths and assets.file is not None:
                    assets.paths = self.ctx.storage.enumerate_paths_for_file(
                        file_storage_prefix(assets.file)
                    )
            except Exception as exc:
                self._log.error(
                    "version_file_resolution_failed",
                    item=item.id,
                    version=version.id,
                    file=version.file_id,
                    error=repr(exc),
                )
                assets.file = None
                assets.paths = None
            resolved.append(assets)
        return resolved
