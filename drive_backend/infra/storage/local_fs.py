"""
Connecteur de stockage objet sur système de fichiers local.

Layout: STORAGE_ROOT/<chemin logique>, par ex. `files/<company>/<user>/<file>/chunk1` et ses
dérivés (`.../thumbnails/0.png`). Les chemins retournés sont relatifs à la racine, séparés par `/`.
Un chemin déjà absent est considéré comme supprimé.
"""

from __future__ import annotations

import contextlib
import os


class StoragePathError(ValueError):
    """Chemin logique sortant de la racine de stockage."""


class LocalFileStorage:
    """Stockage de blobs sous un dossier racine."""

    def __init__(self, root: str) -> None:
        """Initialise le connecteur et crée la racine si besoin."""
        self.root = os.path.abspath(root)
        os.makedirs(self.root, exist_ok=True)

    def _abs(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.root, path.lstrip("/")))
        if full != self.root and not full.startswith(self.root + os.sep):
            raise StoragePathError(f"path outside storage root: {path!r}")
        return full

    def _rel(self, full: str) -> str:
        return os.path.relpath(full, self.root).replace(os.sep, "/")

    def write(self, path: str, data: bytes) -> None:
        """Écrit un blob (écriture atomique par renommage)."""
        full = self._abs(path)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        tmp = full + ".tmp"
        with open(tmp, "wb") as f:
            f.write(data)
        os.replace(tmp, full)

    def enumerate_paths_for_file(self, prefix: str) -> list[str]:
        """Liste tous les blobs sous le préfixe (ou le blob lui-même), triés."""
        base = self._abs(prefix)
        if os.path.isfile(base):
            return [self._rel(base)]
        if not os.path.isdir(base):
            return []
        paths: list[str] = []
        for dirpath, _dirnames, filenames in os.walk(base):
            for name in filenames:
                paths.append(self._rel(os.path.join(dirpath, name)))
        return sorted(paths)

    def remove(self, path: str) -> bool:
        """Supprime un blob et les dossiers devenus vides. Lève sur erreur d'E/S."""
        full = self._abs(path)
        try:
            os.remove(full)
        except FileNotFoundError:
            return True
        self._prune_empty_dirs(os.path.dirname(full))
        return True

    def _prune_empty_dirs(self, directory: str) -> None:
        while directory != self.root and directory.startswith(self.root + os.sep):
            # un autre thread peut avoir déjà supprimé ou rempli le dossier
            with contextlib.suppress(OSError):
                os.rmdir(directory)
            if os.path.isdir(directory):
                return
            directory = os.path.dirname(directory)
