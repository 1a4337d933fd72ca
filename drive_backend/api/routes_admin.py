# ============================================================
# Module : drive_backend/api/routes_admin.py
# Objet  : Endpoints /admin/user/* (suppression de comptes, droit à l'oubli).
# Notes  : Secret partagé dans le corps; jamais loggé.
# ============================================================
"""Routes d'administration pour la suppression des comptes utilisateurs.

Chaque requête porte le secret admin; un secret incorrect donne 403, un `userId` vide 400. La
suppression s'exécute dans le worker HTTP (route synchrone) et renvoie toujours un statut.
"""

from __future__ import annotations

import hmac

import structlog
from fastapi import APIRouter, Request

from drive_backend.api.schemas import (
    AdminRequest,
    DeleteUserRequest,
    DeletionStatusResponse,
    MarkUserRequest,
)
from drive_backend.apigw.errors import bad_request, forbidden
from drive_backend.domain.deletion_controller import DeletionStateController

router = APIRouter(prefix="/admin", tags=["admin"])
log = structlog.get_logger(__name__)


def _controller(request: Request) -> DeletionStateController:
    return request.app.state.container.build_controller()


def _check_secret(request: Request, payload: AdminRequest) -> None:
    expected = request.app.state.container.settings.ADMIN_ENDPOINT_SECRET or ""
    if not expected or not hmac.compare_digest(payload.secret.encode(), expected.encode()):
        log.warning("admin_wrong_secret", path=request.url.path)
        raise forbidden("Wrong secret")


def _require_user_id(user_id: str) -> str:
    user_id = (user_id or "").strip()
    if not user_id:
        raise bad_request("userId is required")
    return user_id


@router.post("/user/delete", response_model=DeletionStatusResponse)
def delete_user(req: DeleteUserRequest, request: Request) -> dict:
    """Supprime (ou marque seulement, `deleteData=false`) un utilisateur.

    Returns:
        dict: {"status": "failed"|"deleting"|"done", "userId": str}
    """
    _check_secret(request, req)
    user_id = _require_user_id(req.user_id)
    log.info("admin_delete_user", user=user_id, delete_data=req.delete_data)
    return _controller(request).delete_user(user_id, req.delete_data).to_dict()


@router.post("/user/delete/pending")
def pending_deletions(req: AdminRequest, request: Request) -> list[list]:
    """Liste les suppressions en cours.

    Returns:
        list: [[userId, epoch_ms], ...] par epoch croissant.
    """
    _check_secret(request, req)
    return [[user_id, epoch] for user_id, epoch in _controller(request).list_pending_deletions()]


@router.post("/user/mark", response_model=DeletionStatusResponse)
def mark_user(req: MarkUserRequest, request: Request) -> dict:
    """Force la déconnexion et marque l'utilisateur pour suppression différée."""
    _check_secret(request, req)
    user_id = _require_user_id(req.user_id)
    log.info("admin_mark_user", user=user_id)
    return _controller(request).mark_to_delete(user_id).to_dict()
