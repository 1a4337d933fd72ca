"""Chemins de stockage objet des fichiers et des espaces utilisateurs."""

from __future__ import annotations

from drive_backend.domain.entities import StoredFile

FILES_PREFIX = "files"


def user_storage_prefix(user_id: str, company_id: str) -> str:
    """Préfixe de stockage d'un utilisateur au sein d'une entreprise."""
    return f"{FILES_PREFIX}/{company_id}/{user_id}"


def file_storage_prefix(file: StoredFile) -> str:
    """Préfixe regroupant l'original et les dérivés (miniatures, ...) d'un fichier."""
    return f"{user_storage_prefix(file.user_id, file.company_id)}/{file.id}"
