"""Configuration de test pour pytest avec gestion des chemins.

Ce module ajoute la racine du projet au sys.path (imports `drive_backend...` et `scripts...`) et
fournit un contexte de suppression entièrement en mémoire.
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from drive_backend...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from drive_backend.core.container import build_memory_repositories  # noqa: E402
from drive_backend.domain.context import DeletionContext, SearchRepositories  # noqa: E402
from drive_backend.infra.repositories import InMemorySessionStore  # noqa: E402
from drive_backend.infra.search.memory_index import InMemorySearchIndex  # noqa: E402
from tests.fakes import FlakyStorage  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Évite toute connexion Redis/DB réelle et isole le dossier d'audit."""
    for key in ("REDIS_URL", "DATABASE_URL", "ADMIN_ENDPOINT_SECRET", "SEARCH_URL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AUDIT_DIR", str(tmp_path / "audit"))
    monkeypatch.setenv("DELETION_ACTOR", "tester")


@pytest.fixture
def ctx() -> DeletionContext:
    """Contexte de suppression en mémoire (stockage à pannes injectables)."""
    return DeletionContext(
        **build_memory_repositories(),
        search=SearchRepositories(
            items=InMemorySearchIndex("drive_files"), users=InMemorySearchIndex("users")
        ),
        storage=FlakyStorage(),
        sessions=InMemorySessionStore(),
        batch_size=3,
    )
