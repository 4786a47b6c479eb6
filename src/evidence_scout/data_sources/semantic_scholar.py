"""Semantic Scholar Graph API provider."""

from typing import Any

from evidence_scout.constants import (
    NO_ABSTRACT,
    NO_TITLE,
    SEMANTIC_SCHOLAR_FIELDS,
    SEMANTIC_SCHOLAR_MAX_AUTHORS,
    SEMANTIC_SCHOLAR_PAPER_URL,
    SEMANTIC_SCHOLAR_SEARCH_URL,
    UNKNOWN_DATE,
)
from evidence_scout.data_sources.base_client import RequestContext
from evidence_scout.data_sources.base_provider import LiteratureProvider
from evidence_scout.models.model_research import ResearchSource, SourceType


class SemanticScholarClient(LiteratureProvider):
    """Client for /graph/v1/paper/search."""

    source_type = SourceType.SEMANTIC_SCHOLAR
    semantic = True

    def __init__(self, api_key: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    @property
    def _source_name(self) -> str:
        return "semantic_scholar"

    async def _search(self, query: str, limit: int) -> list[ResearchSource]:
        params = {"query": query, "fields": SEMANTIC_SCHOLAR_FIELDS, "limit": limit}
        headers = {"x-api-key": self.api_key} if self.api_key else None

        data = await self._rest_get(
            SEMANTIC_SCHOLAR_SEARCH_URL,
            params,
            headers=headers,
            context=RequestContext(source=self._source_name, method="paper_search"),
        )
        papers = data.get("data") if isinstance(data, dict) else None
        if not isinstance(papers, list):
            return []
        return [self._parse_paper(paper) for paper in papers if paper.get("paperId")]

    @staticmethod
    def _parse_paper(paper: dict[str, Any]) -> ResearchSource:
        paper_id = paper["paperId"]
        external_ids = paper.get("externalIds") or {}
        year = paper.get("year")

        return ResearchSource(
            id=str(external_ids.get("PubMed") or paper_id),
            title=paper.get("title") or NO_TITLE,
            abstract=paper.get("abstract") or NO_ABSTRACT,
            authors=[
                a["name"] for a in paper.get("authors") or [] if a.get("name")
            ][:SEMANTIC_SCHOLAR_MAX_AUTHORS],
            date=str(year) if year else UNKNOWN_DATE,
            url=paper.get("url") or SEMANTIC_SCHOLAR_PAPER_URL.format(paper_id=paper_id),
            source=SourceType.SEMANTIC_SCHOLAR,
        )
