# Schémas Pydantic exposés par l'API d'administration (requêtes et réponses).

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AdminRequest(BaseModel):
    """Corps commun des requêtes admin: le secret partagé."""

    model_config = ConfigDict(populate_by_name=True)

    secret: str = ""


class DeleteUserRequest(AdminRequest):
    """Requête de suppression d'un utilisateur.

    Champs:
    - secret: str (secret admin partagé)
    - userId: str (identifiant de l'utilisateur)
    - deleteData: bool (False pour seulement marquer le compte)
    """

    user_id: str = Field(default="", alias="userId")
    delete_data: bool = Field(default=True, alias="deleteData")


class MarkUserRequest(AdminRequest):
    """Requête de marquage (déconnexion forcée + marqueur de suppression)."""

    user_id: str = Field(default="", alias="userId")


class DeletionStatusResponse(BaseModel):
    """Statut d'une suppression pour un utilisateur."""

    status: Literal["failed", "deleting", "done"]
    userId: str
