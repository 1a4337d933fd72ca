"""
Entités du domaine drive.

Ce module définit les enregistrements manipulés par la suppression d'un compte: utilisateur, noeuds
de l'arborescence, versions, fichiers physiques et rattachements (entreprise, identité externe).
"""

from pydantic import BaseModel, Field

ROOT_PREFIX = "user_"


def user_root_key(user_id: str) -> str:
    """Clé de la racine synthétique de l'arborescence d'un utilisateur."""
    return f"{ROOT_PREFIX}{user_id}"


class User(BaseModel):
    """Compte utilisateur; jamais détruit, seulement anonymisé et marqué."""

    id: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    deleted: bool = False
    # 0: aucune suppression en cours (ou terminée); >0: epoch ms de la tentative en cours
    delete_process_started_epoch: int = 0


class DriveItem(BaseModel):
    """Noeud de l'arborescence (fichier ou dossier)."""

    id: str
    parent_id: str
    name: str = ""
    is_directory: bool = False
    creator: str = ""
    company_id: str = ""
    is_in_trash: bool = False


class FileVersion(BaseModel):
    """Version immuable d'un noeud, pointant vers un fichier physique."""

    id: str
    drive_item_id: str
    creator_id: str = ""
    file_id: str | None = None
    date_added: int = 0


class StoredFile(BaseModel):
    """Métadonnées d'un fichier physique (un ou plusieurs blobs en stockage)."""

    id: str
    user_id: str = ""
    company_id: str = ""
    filename: str = ""
    size: int = 0


class CompanyUser(BaseModel):
    """Rattachement d'un utilisateur à une entreprise."""

    id: str
    group_id: str
    user_id: str
    role: str = "member"


class ExternalUser(BaseModel):
    """Identité externe (fournisseur d'identité) liée à un utilisateur."""

    id: str
    user_id: str
    service_id: str = ""
    external_id: str = ""


class VersionAssets(BaseModel):
    """Version résolue avec son fichier et, si demandé, ses chemins en stockage."""

    version: FileVersion
    file: StoredFile | None = None
    paths: list[str] | None = Field(default=None)
