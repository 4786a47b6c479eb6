"""OpenAlex works search provider."""

from typing import Any

from evidence_scout.constants import (
    NO_ABSTRACT,
    NO_TITLE,
    OPENALEX_ID_PREFIX,
    OPENALEX_MAX_AUTHORS,
    OPENALEX_SELECT_FIELDS,
    OPENALEX_WORKS_URL,
    UNKNOWN_DATE,
)
from evidence_scout.data_sources.base_client import DataSourceError, RequestContext
from evidence_scout.data_sources.base_provider import LiteratureProvider
from evidence_scout.models.model_research import ResearchSource, SourceType


def reconstruct_abstract(inverted_index: dict[str, list[int]] | None) -> str:
    """Rebuild plain text from an OpenAlex ``abstract_inverted_index``.

    Each word is placed at every one of its positions; positions 0..max are
    then read in order and unfilled gaps are skipped.

    >>> reconstruct_abstract({"hello": [0], "world": [1]})
    'hello world'
    >>> reconstruct_abstract({"hello": [0], "world": [2]})
    'hello world'
    """
    if not inverted_index:
        return ""

    positions: dict[int, str] = {}
    for word, indexes in inverted_index.items():
        for pos in indexes:
            positions[pos] = word

    if not positions:
        return ""
    return " ".join(
        positions[i] for i in range(max(positions) + 1) if i in positions
    )


class OpenAlexClient(LiteratureProvider):
    """Client for the OpenAlex /works endpoint."""

    source_type = SourceType.OPENALEX
    semantic = True

    def __init__(self, mailto: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.mailto = mailto

    @property
    def _source_name(self) -> str:
        return "openalex"

    async def _search(self, query: str, limit: int) -> list[ResearchSource]:
        params: dict[str, Any] = {
            "search": query,
            "per_page": limit,
            "filter": "has_abstract:true",
            "select": OPENALEX_SELECT_FIELDS,
        }
        if self.mailto:
            params["mailto"] = self.mailto

        data = await self._rest_get(
            OPENALEX_WORKS_URL,
            params,
            context=RequestContext(source=self._source_name, method="works"),
        )
        if not isinstance(data, dict):
            raise DataSourceError(self._source_name, "Unexpected works response shape")

        return [self._parse_work(work) for work in data.get("results") or []]

    @staticmethod
    def _parse_work(work: dict[str, Any]) -> ResearchSource:
        raw_id = work.get("id") or ""
        work_id = raw_id.removeprefix(OPENALEX_ID_PREFIX)

        authors = [
            (a.get("author") or {}).get("display_name")
            for a in work.get("authorships") or []
        ]
        authors = [name for name in authors if name][:OPENALEX_MAX_AUTHORS]

        year = work.get("publication_year")
        date = work.get("publication_date") or (str(year) if year else UNKNOWN_DATE)

        primary_location = work.get("primary_location") or {}
        open_access = work.get("open_access") or {}
        url = (
            work.get("doi")
            or primary_location.get("landing_page_url")
            or open_access.get("oa_url")
            or raw_id
        )

        return ResearchSource(
            id=work_id,
            title=work.get("title") or NO_TITLE,
            abstract=reconstruct_abstract(work.get("abstract_inverted_index"))
            or NO_ABSTRACT,
            authors=authors,
            date=date,
            url=url,
            source=SourceType.OPENALEX,
        )
