"""
PubMed E-utilities provider.

Two-step protocol:
  1. search_ids     — esearch for PMIDs, sorted by relevance
  2. fetch_sources  — efetch the batch as XML and parse into ResearchSource
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any

from evidence_scout.constants import (
    NO_ABSTRACT,
    NO_TITLE,
    PUBMED_ARTICLE_URL,
    PUBMED_FETCH_URL,
    PUBMED_MAX_AUTHORS,
    PUBMED_SEARCH_URL,
    UNKNOWN_DATE,
)
from evidence_scout.data_sources.base_client import DataSourceError, RequestContext
from evidence_scout.data_sources.base_provider import LiteratureProvider
from evidence_scout.models.model_research import ResearchSource, SourceType

logger = logging.getLogger(__name__)


class PubMedClient(LiteratureProvider):
    """Client for querying PubMed/NCBI APIs."""

    source_type = SourceType.PUBMED

    def __init__(self, api_key: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    @property
    def _source_name(self) -> str:
        return "pubmed"

    def _base_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"db": "pubmed"}
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    async def _search(self, query: str, limit: int) -> list[ResearchSource]:
        pmids = await self.search_ids(query, limit)
        if not pmids:
            return []
        return await self.fetch_sources(pmids)

    async def search_ids(self, query: str, max_results: int) -> list[str]:
        """Search PubMed and return PMIDs ordered by relevance."""
        params = {
            **self._base_params(),
            "term": query,
            "retmode": "json",
            "retmax": max_results,
            "sort": "relevance",
        }
        data = await self._rest_get(
            PUBMED_SEARCH_URL,
            params,
            context=RequestContext(source=self._source_name, method="esearch"),
        )
        if not isinstance(data, dict):
            raise DataSourceError(self._source_name, "Unexpected esearch response shape")
        return list(data.get("esearchresult", {}).get("idlist", []))[:max_results]

    async def fetch_sources(self, pmids: list[str]) -> list[ResearchSource]:
        """Fetch article details for PMIDs, keeping the order the PMIDs came in."""
        if not pmids:
            return []

        params = {
            **self._base_params(),
            "id": ",".join(pmids),
            "retmode": "xml",
        }
        xml_text = await self._rest_get_xml(
            PUBMED_FETCH_URL,
            params,
            context=RequestContext(source=self._source_name, method="efetch"),
        )
        sources = self._parse_pubmed_xml(xml_text)

        rank = {pmid: i for i, pmid in enumerate(pmids)}
        return sorted(sources, key=lambda s: rank.get(s.id, len(rank)))

    def _parse_pubmed_xml(self, xml_text: str) -> list[ResearchSource]:
        """Parse an efetch XML payload into ResearchSource records."""
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise DataSourceError(self._source_name, f"Failed to parse XML: {e}")

        sources = []
        for article_elem in root.findall(".//PubmedArticle"):
            pmid = self._xml_text(article_elem, "MedlineCitation/PMID") or self._xml_text(
                article_elem, ".//PMID"
            )
            if not pmid:
                continue

            title_elem = article_elem.find(".//ArticleTitle")
            title = "".join(title_elem.itertext()).strip() if title_elem is not None else ""

            # Abstract - may have multiple labelled sections
            abstract_parts = []
            for abs_elem in article_elem.findall(".//AbstractText"):
                label = abs_elem.get("Label", "")
                text = "".join(abs_elem.itertext()).strip()
                if label and text:
                    abstract_parts.append(f"{label}: {text}")
                elif text:
                    abstract_parts.append(text)

            authors = []
            for author in article_elem.findall(".//AuthorList/Author"):
                last_name = self._xml_text(author, "LastName")
                initials = self._xml_text(author, "Initials")
                if last_name:
                    authors.append(f"{last_name} {initials}" if initials else last_name)

            year = self._xml_text(article_elem, ".//PubDate/Year") or self._xml_text(
                article_elem, ".//DateCompleted/Year"
            )

            sources.append(
                ResearchSource(
                    id=pmid,
                    title=title or NO_TITLE,
                    abstract=" ".join(abstract_parts) or NO_ABSTRACT,
                    authors=authors[:PUBMED_MAX_AUTHORS],
                    date=year or UNKNOWN_DATE,
                    url=PUBMED_ARTICLE_URL.format(pmid=pmid),
                    source=SourceType.PUBMED,
                )
            )

        return sources

    @staticmethod
    def _xml_text(elem: ET.Element, path: str) -> str | None:
        """Safely extract text from an XML element."""
        found = elem.find(path)
        return found.text.strip() if found is not None and found.text else None
