"""SQLAlchemy models for persistence layer (users, drive tree, versions, files, memberships)."""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Index,
    MetaData,
    String,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class UserORM(Base):
    """Comptes utilisateurs (jamais supprimés, seulement anonymisés)."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False, default="")
    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    deleted = Column(Boolean, nullable=False, default=False)
    delete_process_started_epoch = Column(BigInteger, nullable=False, default=0)

    __table_args__ = (Index("ix_users_delete_epoch", "delete_process_started_epoch"),)


class DriveItemORM(Base):
    """Noeuds de l'arborescence (fichiers et dossiers)."""

    __tablename__ = "drive_items"

    id = Column(String(64), primary_key=True)
    parent_id = Column(String(128), nullable=False)
    name = Column(String(512), nullable=False, default="")
    is_directory = Column(Boolean, nullable=False, default=False)
    creator = Column(String(64), nullable=False, default="")
    company_id = Column(String(64), nullable=False, default="")
    is_in_trash = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_drive_items_parent", "parent_id"),
        Index("ix_drive_items_creator", "creator"),
    )


class FileVersionORM(Base):
    """Versions des noeuds."""

    __tablename__ = "file_versions"

    id = Column(String(64), primary_key=True)
    drive_item_id = Column(String(64), nullable=False)
    creator_id = Column(String(64), nullable=False, default="")
    file_id = Column(String(64), nullable=True)
    date_added = Column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        Index("ix_file_versions_item", "drive_item_id"),
        Index("ix_file_versions_creator", "creator_id"),
    )


class StoredFileORM(Base):
    """Métadonnées des fichiers physiques."""

    __tablename__ = "files"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, default="")
    company_id = Column(String(64), nullable=False, default="")
    filename = Column(String(512), nullable=False, default="")
    size = Column(BigInteger, nullable=False, default=0)

    __table_args__ = (Index("ix_files_user", "user_id"),)


class CompanyUserORM(Base):
    """Rattachements utilisateur ↔ entreprise."""

    __tablename__ = "company_users"

    id = Column(String(64), primary_key=True)
    group_id = Column(String(64), nullable=False)
    user_id = Column(String(64), nullable=False)
    role = Column(String(32), nullable=False, default="member")

    __table_args__ = (Index("ix_company_users_user", "user_id"),)


class ExternalUserORM(Base):
    """Identités externes liées aux utilisateurs."""

    __tablename__ = "external_users"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False)
    service_id = Column(String(64), nullable=False, default="")
    external_id = Column(String(255), nullable=False, default="")

    __table_args__ = (Index("ix_external_users_user", "user_id"),)
