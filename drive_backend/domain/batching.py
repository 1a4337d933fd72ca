"""Exécution par lots à concurrence bornée.

Utilisé pour supprimer des chemins en stockage objet: chaque lot est soumis à un pool de threads et
le lot suivant n'est pas lancé tant que le lot courant n'est pas terminé.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

import structlog

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Découpe une séquence en tranches successives de taille `size` au plus."""
    size = max(1, int(size))
    for start in range(0, len(items), size):
        yield items[start : start + size]


class BatchExecutor:
    """Applique une fonction booléenne à des éléments, lot par lot."""

    def __init__(self, batch_size: int = 10) -> None:
        self.batch_size = max(1, int(batch_size))
        self._log = structlog.get_logger(__name__).bind(component="batch_executor")

    def run_all_true(self, items: Sequence[T], func: Callable[[T], bool]) -> bool:
        """Exécute `func` sur tous les éléments et indique si tous ont réussi.

        Tous les lots sont exécutés même après un échec, afin qu'une reprise ait le moins de travail
        possible. Une exception levée par `func` compte comme un échec. Une liste vide renvoie True.
        """
        if not items:
            return True
        all_ok = True
        with ThreadPoolExecutor(max_workers=self.batch_size) as pool:
            for batch in chunked(items, self.batch_size):
                futures = [pool.submit(func, item) for item in batch]
                for item, future in zip(batch, futures, strict=True):
                    try:
                        ok = bool(future.result())
                    except Exception as exc:
                        self._log.error("batch_item_failed", item=str(item), error=repr(exc))
                        ok = False
                    all_ok = all_ok and ok
        return all_ok
