"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, dépôts, stockage objet, index de recherche, sessions)
et expose un singleton `container` utilisé par l'API, les tâches Celery et les scripts.
Les magasins sont construits à la première demande, pas à l'import.
"""

from __future__ import annotations

import structlog

from drive_backend.core.settings import Settings, get_settings
from drive_backend.domain.context import DeletionContext, SearchRepositories
from drive_backend.domain.deletion_controller import DeletionStateController
from drive_backend.domain.entities import (
    CompanyUser,
    DriveItem,
    ExternalUser,
    FileVersion,
    StoredFile,
    User,
)
from drive_backend.infra.audit import DeletionAuditLog
from drive_backend.infra.repo.db import get_engine, get_session_factory
from drive_backend.infra.repo.models import Base
from drive_backend.infra.repo.sql_repository import build_sql_repositories
from drive_backend.infra.repositories import (
    InMemoryEntityRepo,
    InMemorySessionStore,
    RedisSessionStore,
)
from drive_backend.infra.search.elasticsearch import ElasticSearchRepository
from drive_backend.infra.search.memory_index import InMemorySearchIndex
from drive_backend.infra.storage.local_fs import LocalFileStorage
from drive_backend.infra.storage.memory import InMemoryBlobStorage

log = structlog.get_logger(__name__)


def build_memory_repositories() -> dict[str, InMemoryEntityRepo]:
    """Construit des dépôts mémoire pour toutes les entités (dev/tests)."""
    return {
        "users": InMemoryEntityRepo("users", User),
        "items": InMemoryEntityRepo("drive_items", DriveItem),
        "versions": InMemoryEntityRepo("file_versions", FileVersion),
        "files": InMemoryEntityRepo("files", StoredFile),
        "company_users": InMemoryEntityRepo("company_users", CompanyUser),
        "external_users": InMemoryEntityRepo("external_users", ExternalUser),
    }


class Container:
    """Regroupe les collaborateurs construits à partir des settings."""

    def __init__(
        self, settings: Settings | None = None, context: DeletionContext | None = None
    ):
        self.settings = settings or get_settings()
        self._context: DeletionContext | None = context
        self.metadata_backend = "unset"
        self.session_backend = "unset"

    def _build_repositories(self) -> dict:
        if self.settings.DATABASE_URL:
            engine = get_engine(self.settings.DATABASE_URL)
            if engine.dialect.name == "sqlite":
                # pas de migration Alembic en dev SQLite
                Base.metadata.create_all(engine)
            self.metadata_backend = "sql"
            return build_sql_repositories(get_session_factory(engine))
        self.metadata_backend = "memory"
        return build_memory_repositories()

    def _build_storage(self):
        backend = self.settings.STORAGE_BACKEND.lower()
        if backend == "local":
            return LocalFileStorage(self.settings.STORAGE_ROOT)
        if backend == "memory":
            return InMemoryBlobStorage()
        raise ValueError(f"invalid STORAGE_BACKEND: {backend}")

    def _build_search(self) -> SearchRepositories:
        backend = self.settings.SEARCH_BACKEND.lower()
        if backend == "memory":
            return SearchRepositories(
                items=InMemorySearchIndex(self.settings.SEARCH_ITEMS_INDEX),
                users=InMemorySearchIndex(self.settings.SEARCH_USERS_INDEX),
            )
        if backend == "elasticsearch":
            if not self.settings.SEARCH_URL:
                raise ValueError("SEARCH_URL required when SEARCH_BACKEND=elasticsearch")
            return SearchRepositories(
                items=ElasticSearchRepository(
                    self.settings.SEARCH_URL,
                    self.settings.SEARCH_ITEMS_INDEX,
                    api_key=self.settings.SEARCH_API_KEY,
                ),
                users=ElasticSearchRepository(
                    self.settings.SEARCH_URL,
                    self.settings.SEARCH_USERS_INDEX,
                    api_key=self.settings.SEARCH_API_KEY,
                ),
            )
        raise ValueError(f"invalid SEARCH_BACKEND: {backend}")

    def _build_sessions(self):
        if self.settings.REDIS_URL:
            try:
                store = RedisSessionStore(self.settings.REDIS_URL)
                self.session_backend = "redis"
                return store
            except Exception:
                log.warning("session_store_redis_unavailable_fallback_memory")
                self.session_backend = "memory-fallback"
                return InMemorySessionStore()
        self.session_backend = "memory"
        return InMemorySessionStore()

    def build_deletion_context(self) -> DeletionContext:
        """Construit (une fois) le contexte de suppression partagé par les appels."""
        if self._context is None:
            repos = self._build_repositories()
            self._context = DeletionContext(
                **repos,
                search=self._build_search(),
                storage=self._build_storage(),
                sessions=self._build_sessions(),
                batch_size=self.settings.DELETE_BATCH_SIZE,
                scan_files_by_owner=self.settings.DELETE_SCAN_FILES_BY_OWNER,
            )
            log.info(
                "deletion_context_ready",
                metadata=self.metadata_backend,
                sessions=self.session_backend,
                storage=self.settings.STORAGE_BACKEND,
                search=self.settings.SEARCH_BACKEND,
            )
        return self._context

    def build_controller(self) -> DeletionStateController:
        """Construit le contrôleur de suppression avec son journal d'audit."""
        return DeletionStateController(
            self.build_deletion_context(), audit=DeletionAuditLog(self.settings.AUDIT_DIR)
        )


container = Container()
