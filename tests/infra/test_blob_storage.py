"""Tests pour les connecteurs de stockage objet (local et mémoire)."""

from __future__ import annotations

import pytest

from drive_backend.infra.storage.local_fs import LocalFileStorage, StoragePathError
from drive_backend.infra.storage.memory import InMemoryBlobStorage


@pytest.fixture(params=["local", "memory"])
def storage(request, tmp_path):
    """Les deux connecteurs partagent les mêmes sémantiques."""
    if request.param == "local":
        return LocalFileStorage(str(tmp_path / "storage"))
    return InMemoryBlobStorage()


def test_enumerate_prefix(storage) -> None:
    """Préfixe: tous les blobs dessous, triés; blob exact: lui-même; inconnu: vide."""
    storage.write("files/c1/u1/f1/chunk1", b"a")
    storage.write("files/c1/u1/f1/thumbnails/0.png", b"b")
    storage.write("files/c1/u1/f10/chunk1", b"c")

    assert storage.enumerate_paths_for_file("files/c1/u1/f1") == [
        "files/c1/u1/f1/chunk1",
        "files/c1/u1/f1/thumbnails/0.png",
    ]
    assert storage.enumerate_paths_for_file("files/c1/u1/f10/chunk1") == [
        "files/c1/u1/f10/chunk1"
    ]
    assert storage.enumerate_paths_for_file("files/c9") == []


def test_remove_is_idempotent(storage) -> None:
    """Supprimer un chemin absent réussit."""
    storage.write("files/c1/u1/f1/chunk1", b"a")
    assert storage.remove("files/c1/u1/f1/chunk1") is True
    assert storage.remove("files/c1/u1/f1/chunk1") is True
    assert storage.enumerate_paths_for_file("files/c1/u1/f1") == []


def test_local_prunes_empty_directories(tmp_path) -> None:
    """Les dossiers vidés sont retirés, sans toucher aux voisins."""
    storage = LocalFileStorage(str(tmp_path))
    storage.write("files/c1/u1/f1/chunk1", b"a")
    storage.write("files/c1/u1/f2/chunk1", b"b")

    storage.remove("files/c1/u1/f1/chunk1")
    assert not (tmp_path / "files" / "c1" / "u1" / "f1").exists()
    assert (tmp_path / "files" / "c1" / "u1" / "f2" / "chunk1").exists()


def test_local_rejects_paths_outside_root(tmp_path) -> None:
    """Un chemin qui sort de la racine est refusé."""
    storage = LocalFileStorage(str(tmp_path / "root"))
    (tmp_path / "secret.txt").write_text("keep", encoding="utf-8")
    with pytest.raises(StoragePathError):
        storage.remove("../secret.txt")
    assert (tmp_path / "secret.txt").exists()
