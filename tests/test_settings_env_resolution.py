"""
Tests pour la résolution des variables d'environnement.

Ce module teste le chargement des settings depuis un fichier .env personnalisé et la construction
des magasins par le conteneur selon la configuration.
"""

from __future__ import annotations

import importlib
from pathlib import Path

import pytest

from drive_backend.core.container import Container
from drive_backend.core.settings import Settings
from drive_backend.infra.repo.sql_repository import SqlRepository
from drive_backend.infra.repositories import InMemoryEntityRepo, InMemorySessionStore
from drive_backend.infra.storage.local_fs import LocalFileStorage
from drive_backend.infra.storage.memory import InMemoryBlobStorage


def test_settings_reads_env_file(tmp_path: Path, monkeypatch) -> None:
    """
    Teste que les settings lisent correctement les fichiers d'environnement.

    Vérifie que les variables définies dans un fichier .env personnalisé sont chargées.
    """
    env = tmp_path / ".env.custom"
    env.write_text("DELETE_BATCH_SIZE=4\nSTORAGE_BACKEND=memory\n", encoding="utf-8")
    monkeypatch.setenv("ENV_FILE", str(env))

    # Reload settings module to pick up new ENV_FILE
    settings_mod = importlib.import_module("drive_backend.core.settings")
    importlib.reload(settings_mod)
    try:
        s = settings_mod.get_settings()
        assert s.DELETE_BATCH_SIZE == 4
        assert s.STORAGE_BACKEND == "memory"
    finally:
        monkeypatch.delenv("ENV_FILE")
        importlib.reload(settings_mod)


def test_container_builds_memory_backends(tmp_path) -> None:
    """Sans base ni Redis: dépôts, stockage et sessions en mémoire."""
    settings = Settings(STORAGE_BACKEND="memory", DELETE_BATCH_SIZE=5)
    ctx = Container(settings=settings).build_deletion_context()
    assert isinstance(ctx.users, InMemoryEntityRepo)
    assert isinstance(ctx.storage, InMemoryBlobStorage)
    assert isinstance(ctx.sessions, InMemorySessionStore)
    assert ctx.batch_size == 5


def test_container_builds_sql_and_local_backends(tmp_path) -> None:
    """Avec DATABASE_URL SQLite et stockage local."""
    settings = Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'drive.db'}",
        STORAGE_BACKEND="local",
        STORAGE_ROOT=str(tmp_path / "storage"),
    )
    container = Container(settings=settings)
    ctx = container.build_deletion_context()
    assert isinstance(ctx.users, SqlRepository)
    assert isinstance(ctx.storage, LocalFileStorage)
    assert container.build_deletion_context() is ctx


def test_container_rejects_unknown_backends() -> None:
    """Backend inconnu ou Elasticsearch sans URL: erreur de configuration."""
    with pytest.raises(ValueError):
        Container(settings=Settings(STORAGE_BACKEND="s3")).build_deletion_context()
    with pytest.raises(ValueError):
        Container(
            settings=Settings(STORAGE_BACKEND="memory", SEARCH_BACKEND="elasticsearch")
        ).build_deletion_context()
