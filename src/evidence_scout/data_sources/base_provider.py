"""Uniform literature-search capability shared by every provider adapter."""

import logging
from abc import abstractmethod

from evidence_scout.data_sources.base_client import BaseClient
from evidence_scout.models.model_research import ResearchSource, SourceType

logger = logging.getLogger("evidence_scout.data_sources")


class LiteratureProvider(BaseClient):
    """
    A BaseClient that can answer ``search(query, limit) -> list[ResearchSource]``.

    ``search`` never raises: any network or parsing failure is logged and
    turned into an empty list so that one provider's outage cannot fail
    the orchestration fan-out.
    """

    source_type: SourceType = SourceType.OTHER

    # Providers that understand natural-language questions (used by the
    # semantic tier of the waterfall strategy).
    semantic: bool = False

    @property
    def name(self) -> str:
        return self.source_type.value

    @abstractmethod
    async def _search(self, query: str, limit: int) -> list[ResearchSource]:
        """Provider-specific search; may raise."""
        ...

    async def search(self, query: str, limit: int = 5) -> list[ResearchSource]:
        if limit <= 0 or not query.strip():
            logger.warning("%s search skipped: query=%r limit=%d", self.name, query, limit)
            return []
        try:
            sources = await self._search(query, limit)
        except Exception as e:
            logger.warning("%s search failed for %r: %s", self.name, query, e)
            return []
        logger.info("%s returned %d sources for %r", self.name, len(sources), query)
        return sources[:limit]
