"""Interfaces des collaborateurs de la suppression de comptes.

Ce module définit les protocoles que doivent implémenter les magasins (métadonnées, recherche,
stockage objet, sessions) et le contexte qui les regroupe pour une exécution.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from drive_backend.domain.entities import (
    CompanyUser,
    DriveItem,
    ExternalUser,
    FileVersion,
    StoredFile,
    User,
)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 10


class EntityRepository(Protocol[T]):
    """Dépôt de métadonnées pour un type d'entité.

    Les filtres sont des égalités champ → valeur; un champ suffixé par `__gt` signifie
    « strictement supérieur à ».
    """

    table: str

    def find(self, filters: dict[str, Any]) -> list[T]:
        """Retourne toutes les entités correspondant aux filtres."""

    def find_one(self, filters: dict[str, Any]) -> T | None:
        """Retourne la première entité correspondante, ou None."""

    def save(self, entity: T) -> T:
        """Crée ou remplace l'entité."""

    def remove(self, entity: T) -> bool:
        """Supprime l'entité; False si aucune ligne n'a été supprimée."""


class SearchRepository(Protocol):
    """Index plein texte (projection dénormalisée, éventuellement cohérente)."""

    def search(self, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Retourne les documents indexés correspondant aux filtres."""

    def remove(self, entities: Iterable[Any]) -> None:
        """Retire les documents des entités fournies. Peut lever une exception."""


class BlobStorage(Protocol):
    """Connecteur de stockage objet."""

    def enumerate_paths_for_file(self, prefix: str) -> list[str]:
        """Liste tous les chemins physiques sous un préfixe."""

    def remove(self, path: str) -> bool:
        """Supprime un chemin; un chemin absent compte comme supprimé. Peut lever."""


class SessionRevoker(Protocol):
    """Collaborateur de sessions utilisé pour forcer la déconnexion."""

    def force_logout(self, user_id: str) -> None:
        """Révoque toutes les sessions de l'utilisateur."""


@dataclass
class SearchRepositories:
    """Index de recherche impliqués dans la suppression."""

    items: SearchRepository
    users: SearchRepository


@dataclass
class DeletionContext:
    """Collaborateurs d'une exécution, construits une fois et passés explicitement."""

    users: EntityRepository[User]
    items: EntityRepository[DriveItem]
    versions: EntityRepository[FileVersion]
    files: EntityRepository[StoredFile]
    company_users: EntityRepository[CompanyUser]
    external_users: EntityRepository[ExternalUser]
    search: SearchRepositories
    storage: BlobStorage
    sessions: SessionRevoker
    batch_size: int = DEFAULT_BATCH_SIZE
    scan_files_by_owner: bool = True
