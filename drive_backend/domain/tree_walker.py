"""Parcours en profondeur post-ordre de l'arborescence des noeuds drive.

Le parcours est itératif (pile explicite) pour supporter des arborescences très profondes, et garde
un ensemble des identifiants déjà rencontrés pour ignorer les données `parent_id` incohérentes
(doublons, cycles).

Un noeud n'est visité qu'après la visite de tous ses enfants; le visiteur reçoit:
- `item`: le noeud courant,
- `child_results`: None pour un fichier, la liste des résultats des enfants pour un dossier,
- `ancestors`: les dossiers parents, de la racine vers le parent direct.

Le parcours ne supprime rien et ne capture pas les exceptions du visiteur.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import structlog

from drive_backend.domain.context import EntityRepository
from drive_backend.domain.entities import DriveItem

R = TypeVar("R")

Visitor = Callable[[DriveItem, list[R] | None, list[DriveItem]], R]


@dataclass
class _Frame(Generic[R]):
    item: DriveItem | None
    pending: list[DriveItem]
    results: list[R] = field(default_factory=list)


class DirectoryTreeWalker:
    """Parcours post-ordre générique au-dessus du dépôt des noeuds."""

    def __init__(self, items: EntityRepository[DriveItem]) -> None:
        self.items = items
        self._log = structlog.get_logger(__name__).bind(component="tree_walker")

    def _children_of(self, parent_id: str, seen: set[str]) -> list[DriveItem]:
        children: list[DriveItem] = []
        for child in self.items.find({"parent_id": parent_id}):
            if child.id in seen:
                self._log.warning("tree_item_already_visited", item=child.id, parent=parent_id)
                continue
            seen.add(child.id)
            children.append(child)
        return children

    def walk(self, root_key: str, visit: Visitor[R]) -> list[R]:
        """Parcourt les descendants de `root_key`; retourne les résultats des enfants directs."""
        seen: set[str] = {root_key}
        root: _Frame[R] = _Frame(item=None, pending=self._children_of(root_key, seen))
        stack: list[_Frame[R]] = [root]
        while stack:
            frame = stack[-1]
            if frame.pending:
                child = frame.pending.pop()
                if child.is_directory:
                    stack.append(_Frame(item=child, pending=self._children_of(child.id, seen)))
                else:
                    frame.results.append(visit(child, None, self._ancestors(stack)))
                continue
            stack.pop()
            if frame.item is None:
                continue
            parent = stack[-1]
            parent.results.append(visit(frame.item, frame.results, self._ancestors(stack)))
        return root.results

    @staticmethod
    def _ancestors(stack: list[_Frame[R]]) -> list[DriveItem]:
        return [f.item for f in stack if f.item is not None]
