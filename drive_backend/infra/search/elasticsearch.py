"""Adaptateur de recherche Elasticsearch/OpenSearch via API REST (httpx).

Variables utilisées (via settings):
  - `SEARCH_URL`: URL du cluster (ex: http://localhost:9200)
  - `SEARCH_API_KEY`: clé API (en-tête `Authorization: ApiKey ...`), optionnelle

Implémentation minimale:
  - `search`: requête `bool.filter` de `term` sur `/<index>/_search`.
  - `remove`: `DELETE /<index>/_doc/<id>` par entité; un 404 signifie déjà absent.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import httpx
import structlog

from drive_backend.core.http_constants import DEFAULT_TIMEOUT, HTTP_ERROR_MIN, HTTP_NOT_FOUND

MAX_SEARCH_HITS = 1000


class SearchNetworkError(RuntimeError):
    """Erreur réseau entre l'adaptateur et le cluster de recherche."""


class SearchBackendHTTPError(RuntimeError):
    """Erreur HTTP renvoyée par le cluster de recherche (avec code explicite)."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        """Initialize search backend HTTP error."""
        self.status_code = status_code
        super().__init__(message or f"search backend http error: {status_code}")


class ElasticSearchRepository:
    """Index de recherche distant pour un index donné."""

    def __init__(
        self,
        base_url: str,
        index: str,
        api_key: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialise le client HTTP réutilisable (timeouts/pool)."""
        self.base_url = base_url.rstrip("/")
        self.index = index
        self._log = structlog.get_logger(__name__).bind(component="search_adapter", index=index)
        if client is None:
            headers: dict[str, str] = {"Content-Type": "application/json"}
            if api_key:
                headers["Authorization"] = f"ApiKey {api_key}"
            timeout = httpx.Timeout(DEFAULT_TIMEOUT)
            limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
            client = httpx.Client(headers=headers, timeout=timeout, limits=limits)
        self._client = client

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as exc:
            raise SearchNetworkError(str(exc)) from exc

    def search(self, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Retourne les `_source` des documents dont les champs valent les filtres."""
        body = {
            "size": MAX_SEARCH_HITS,
            "query": {"bool": {"filter": [{"term": {k: v}} for k, v in filters.items()]}},
        }
        resp = self._request("POST", f"/{self.index}/_search", json=body)
        if resp.status_code == HTTP_NOT_FOUND:
            return []
        if resp.status_code >= HTTP_ERROR_MIN:
            raise SearchBackendHTTPError(resp.status_code, "search failed")
        hits = resp.json().get("hits", {}).get("hits", [])
        return [h.get("_source", {}) | {"id": h.get("_id")} for h in hits]

    def remove(self, entities: Iterable[Any]) -> None:
        """Supprime les documents des entités; lève à la première erreur non-404."""
        for entity in entities:
            doc_id = str(getattr(entity, "id", entity))
            resp = self._request("DELETE", f"/{self.index}/_doc/{doc_id}")
            if resp.status_code == HTTP_NOT_FOUND:
                self._log.debug("search_doc_absent", doc_id=doc_id)
                continue
            if resp.status_code >= HTTP_ERROR_MIN:
                raise SearchBackendHTTPError(resp.status_code, f"delete failed for {doc_id}")

    def close(self) -> None:
        """Ferme le client HTTP."""
        self._client.close()
