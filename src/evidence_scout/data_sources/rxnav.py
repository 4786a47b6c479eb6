"""RxNav (RxNorm) lookups: approximate term match and MeSH properties."""

import json
from typing import Any

import httpx

from evidence_scout.constants import (
    RXNAV_APPROXIMATE_TERM_URL,
    RXNAV_MAX_MESH_TERMS,
    RXNAV_PROPERTIES_URL,
    RXNAV_TIMEOUT,
)
from evidence_scout.data_sources.base_client import DataSourceError


class RxNavClient:
    """Thin httpx wrapper over the two RxNav endpoints the normalizer needs.

    A 404 or an empty answer means "no match"; network, HTTP and decoding
    failures raise DataSourceError so callers can tell them apart from a miss.
    """

    def __init__(
        self,
        timeout: float = RXNAV_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport

    async def _get_json(self, url: str, params: dict[str, Any]) -> dict | None:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                resp = await client.get(url, params=params)
            except httpx.HTTPError as e:
                raise DataSourceError("rxnav", f"Request failed: {e}") from e

        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            raise DataSourceError(
                "rxnav", f"HTTP {resp.status_code}", status_code=resp.status_code
            )
        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise DataSourceError("rxnav", f"Invalid JSON: {e}") from e

    async def approximate_term(self, term: str) -> dict[str, Any] | None:
        """Return the best approximateTerm candidate, or None.

        The candidate dict carries ``rxcui``, ``name`` and ``score`` as
        returned by RxNav (score is a numeric string).
        """
        data = await self._get_json(
            RXNAV_APPROXIMATE_TERM_URL, {"term": term, "maxEntries": 1}
        )
        if not data:
            return None
        candidates = (data.get("approximateGroup") or {}).get("candidate") or []
        if not candidates:
            return None
        candidate = candidates[0]
        if not candidate.get("rxcui"):
            return None
        return candidate

    async def get_mesh_terms(self, rxcui: str) -> list[str]:
        """Return up to three MeSH headings linked to an RxCUI."""
        data = await self._get_json(
            RXNAV_PROPERTIES_URL.format(rxcui=rxcui), {"prop": "MESH"}
        )
        if not data:
            return []
        props = (data.get("propConceptGroup") or {}).get("propConcept")
        if not isinstance(props, list):
            return []
        terms = [p["propValue"] for p in props if p.get("propValue")]
        return terms[:RXNAV_MAX_MESH_TERMS]
