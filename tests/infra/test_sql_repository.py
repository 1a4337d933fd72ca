"""
Tests pour les dépôts SQL (SQLAlchemy, SQLite en mémoire).

Vérifie les filtres d'égalité, `__gt` et NULL, le retour booléen de `remove`, puis une suppression
complète d'un compte sur le magasin SQL.
"""

from __future__ import annotations

import pytest

from drive_backend.domain.context import DeletionContext, SearchRepositories
from drive_backend.domain.deletion_controller import DeletionStateController
from drive_backend.domain.entities import FileVersion, User
from drive_backend.infra.repo.db import get_engine, get_session_factory
from drive_backend.infra.repo.models import Base
from drive_backend.infra.repo.sql_repository import build_sql_repositories
from drive_backend.infra.repositories import InMemorySessionStore
from drive_backend.infra.search.memory_index import InMemorySearchIndex
from drive_backend.infra.storage.memory import InMemoryBlobStorage
from tests.fakes import add_dir, add_external, add_file, add_membership, remaining_for, root


@pytest.fixture
def repos():
    """Dépôts SQL sur une base SQLite en mémoire fraîche."""
    engine = get_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield build_sql_repositories(get_session_factory(engine))
    engine.dispose()


def test_save_find_and_filters(repos) -> None:
    """Égalité, `champ__gt` et valeur NULL."""
    users = repos["users"]
    users.save(User(id="a", delete_process_started_epoch=0))
    users.save(User(id="b", delete_process_started_epoch=5))
    users.save(User(id="b", email="b@x", delete_process_started_epoch=7))

    assert [u.id for u in users.find({})] == ["a", "b"]
    assert users.find_one({"id": "b"}).email == "b@x"
    assert [u.id for u in users.find({"delete_process_started_epoch__gt": 0})] == ["b"]
    assert users.find_one({"id": "zzz"}) is None

    versions = repos["versions"]
    versions.save(FileVersion(id="v1", drive_item_id="i", file_id=None))
    versions.save(FileVersion(id="v2", drive_item_id="i", file_id="f"))
    assert [v.id for v in versions.find({"file_id": None})] == ["v1"]


def test_remove_reports_rows(repos) -> None:
    """`remove` renvoie False quand la ligne est déjà absente."""
    users = repos["users"]
    user = users.save(User(id="a"))
    assert users.remove(user) is True
    assert users.remove(user) is False
    assert users.table == "users"


def test_full_deletion_on_sql_store(repos) -> None:
    """Suppression complète d'un compte avec métadonnées en base."""
    ctx = DeletionContext(
        **repos,
        search=SearchRepositories(items=InMemorySearchIndex("i"), users=InMemorySearchIndex("u")),
        storage=InMemoryBlobStorage(),
        sessions=InMemorySessionStore(),
    )
    ctx.users.save(User(id="u1", email="u1@example.com"))
    add_dir(ctx, "dir", root())
    add_file(ctx, "doc", "dir", versions=2)
    add_file(ctx, "elsewhere", root("u2"))
    add_membership(ctx, "u1", "c1")
    add_external(ctx, "u1")

    assert DeletionStateController(ctx).delete_user("u1").status == "done"
    assert set(remaining_for(ctx, "u1").values()) == {0}
    assert ctx.users.find_one({"id": "u1"}).delete_process_started_epoch == 0
    assert ctx.storage.enumerate_paths_for_file("files") == []
