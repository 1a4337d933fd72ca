# ============================================================
# Module : drive_backend/infra/repo/sql_repository.py
# Objet  : Accès SQL (find/find_one/save/remove) générique par type d'entité.
# Notes  : une transaction par opération, chaque suppression est durable aussitôt.
# ============================================================

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from ...domain.entities import (
    CompanyUser,
    DriveItem,
    ExternalUser,
    FileVersion,
    StoredFile,
    User,
)
from ..repositories import GT_SUFFIX
from .db import session_scope
from .models import (
    Base,
    CompanyUserORM,
    DriveItemORM,
    ExternalUserORM,
    FileVersionORM,
    StoredFileORM,
    UserORM,
)

M = TypeVar("M", bound=BaseModel)


class SqlRepository(Generic[M]):
    """Dépôt SQL minimal pour un couple (modèle ORM, modèle domaine)."""

    def __init__(self, factory: sessionmaker, orm: type[Base], model: type[M]) -> None:
        """Construit le repo avec une factory de sessions (SQLAlchemy)."""
        self._factory = factory
        self._orm = orm
        self._model = model
        self.table: str = orm.__tablename__

    def _to_domain(self, row: Any) -> M:
        return self._model(**{c.key: getattr(row, c.key) for c in self._orm.__table__.columns})

    def _where(self, stmt: Any, filters: dict[str, Any]) -> Any:
        for key, value in filters.items():
            if key.endswith(GT_SUFFIX):
                stmt = stmt.where(getattr(self._orm, key[: -len(GT_SUFFIX)]) > value)
            elif value is None:
                stmt = stmt.where(getattr(self._orm, key).is_(None))
            else:
                stmt = stmt.where(getattr(self._orm, key) == value)
        return stmt

    def find(self, filters: dict[str, Any]) -> list[M]:
        """Retourne les lignes correspondant aux filtres, converties en modèles domaine."""
        stmt = self._where(select(self._orm), filters).order_by(self._orm.id)
        with self._factory() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_domain(r) for r in rows]

    def find_one(self, filters: dict[str, Any]) -> M | None:
        """Retourne la première ligne correspondante, ou None."""
        stmt = self._where(select(self._orm), filters).limit(1)
        with self._factory() as session:
            row = session.execute(stmt).scalars().first()
            return self._to_domain(row) if row is not None else None

    def save(self, entity: M) -> M:
        """Insère ou met à jour la ligne (merge sur la clé primaire)."""
        with session_scope(self._factory) as session:
            session.merge(self._orm(**entity.model_dump()))
        return entity

    def remove(self, entity: M) -> bool:
        """Supprime la ligne; False si elle était déjà absente."""
        stmt = delete(self._orm).where(self._orm.id == entity.id)  # type: ignore[attr-defined]
        with session_scope(self._factory) as session:
            result = session.execute(stmt)
            return (result.rowcount or 0) > 0


def build_sql_repositories(factory: sessionmaker) -> dict[str, SqlRepository[Any]]:
    """Construit les dépôts SQL de toutes les entités impliquées dans la suppression."""
    return {
        "users": SqlRepository(factory, UserORM, User),
        "items": SqlRepository(factory, DriveItemORM, DriveItem),
        "versions": SqlRepository(factory, FileVersionORM, FileVersion),
        "files": SqlRepository(factory, StoredFileORM, StoredFile),
        "company_users": SqlRepository(factory, CompanyUserORM, CompanyUser),
        "external_users": SqlRepository(factory, ExternalUserORM, ExternalUser),
    }
