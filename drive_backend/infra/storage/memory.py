"""
Connecteur de stockage objet en mémoire.

Pour les environnements sans disque persistant et les tests; mêmes sémantiques que le connecteur
local (préfixes `/`, chemin absent = supprimé).
"""

from __future__ import annotations

import threading


class InMemoryBlobStorage:
    """Stockage de blobs dans un dict `chemin -> contenu`."""

    def __init__(self) -> None:
        """Initialise un stockage vide."""
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def write(self, path: str, data: bytes) -> None:
        """Écrit un blob."""
        with self._lock:
            self._blobs[path.lstrip("/")] = data

    def exists(self, path: str) -> bool:
        """Indique si un blob est présent."""
        with self._lock:
            return path.lstrip("/") in self._blobs

    def enumerate_paths_for_file(self, prefix: str) -> list[str]:
        """Liste tous les blobs sous le préfixe (ou le blob lui-même), triés."""
        prefix = prefix.strip("/")
        with self._lock:
            return sorted(p for p in self._blobs if p == prefix or p.startswith(prefix + "/"))

    def remove(self, path: str) -> bool:
        """Supprime un blob; True aussi s'il était déjà absent."""
        with self._lock:
            self._blobs.pop(path.lstrip("/"), None)
        return True
