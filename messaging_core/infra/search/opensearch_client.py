# =============================================================================
# File: messaging_core/infra/search/opensearch_client.py
# Description: Minimal async OpenSearch REST client (httpx)
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx

from messaging_core.config.logging_config import get_logger
from messaging_core.config.search_config import SearchConfig, get_search_config

log = get_logger("messaging_core.infra.search.client")


class OpenSearchClient:
    """
    Thin wrapper over the OpenSearch document and _search endpoints.

    Args:
        http_client: Optional shared httpx.AsyncClient; one is created from
                     config when omitted
        config: Search configuration
    """

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, config: Optional[SearchConfig] = None):
        self.config = config or get_search_config()
        self._owns_client = http_client is None
        if http_client is None:
            auth = None
            if self.config.username and self.config.password:
                auth = (self.config.username, self.config.password.get_secret_value())
            http_client = httpx.AsyncClient(
                base_url=self.config.domain_endpoint,
                auth=auth,
                timeout=self.config.timeout,
            )
        self.http = http_client

    async def close(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    async def index_document(self, index: str, document_id: str, document: Dict[str, Any]) -> None:
        response = await self.http.put(f"/{index}/_doc/{document_id}", json=document)
        self._raise_for_status(response, "index_document")

    async def delete_document(self, index: str, document_id: str) -> None:
        response = await self.http.delete(f"/{index}/_doc/{document_id}")
        if response.status_code == 404:
            return
        self._raise_for_status(response, "delete_document")

    async def search_ids(
        self,
        indexes: Sequence[str],
        search_term: str,
        fields: Sequence[str],
        restrict_to_ids: Optional[Sequence[str]] = None,
        offset: int = 0,
        size: int = 25,
        filter_terms: Optional[Dict[str, Sequence[str]]] = None,
    ) -> tuple[List[str], int]:
        """
        Prefix-match search_term against fields; returns (ids, total hits).

        filter_terms keeps only documents whose field equals one of the
        given values. Matching is exact, on the dynamic mapping's keyword
        sub-field.
        """
        query: Dict[str, Any] = {
            "bool": {
                "must": [{
                    "multi_match": {
                        "query": search_term,
                        "fields": list(fields),
                        "type": "phrase_prefix",
                    },
                }],
            },
        }
        filters: List[Dict[str, Any]] = []
        if restrict_to_ids is not None:
            filters.append({"ids": {"values": list(restrict_to_ids)}})
        for field, values in (filter_terms or {}).items():
            filters.append({"terms": {f"{field}.keyword": list(values)}})
        if filters:
            query["bool"]["filter"] = filters

        body = {"query": query, "from": offset, "size": size, "_source": False}
        response = await self.http.post(f"/{','.join(indexes)}/_search", json=body)
        self._raise_for_status(response, "search_ids")

        hits = response.json().get("hits", {})
        total = hits.get("total", {})
        total_count = total.get("value", 0) if isinstance(total, dict) else int(total or 0)
        return [hit["_id"] for hit in hits.get("hits", [])], total_count

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error(f"OpenSearch {operation} failed: {e.response.status_code} {e.response.text[:500]}")
            raise
