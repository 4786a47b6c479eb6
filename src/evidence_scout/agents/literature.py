"""Literature search agent: provider fan-out, merge, dedup and cap."""

import asyncio
import logging
from typing import Any

from evidence_scout.agents.base import BaseAgent, ProgressCallback
from evidence_scout.constants import (
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_SOURCES,
    DEFAULT_PER_PROVIDER_LIMIT,
    PROGRESS_MESSAGES,
)
from evidence_scout.data_sources.base_provider import LiteratureProvider
from evidence_scout.models.model_research import ResearchIntent, ResearchSource

logger = logging.getLogger(__name__)

STRATEGIES = ("keywords", "waterfall")


def merge_results(
    results: list[list[ResearchSource]], max_sources: int = DEFAULT_MAX_SOURCES
) -> list[ResearchSource]:
    """Flatten per-provider results in provider order, keep the first
    occurrence of each id, and truncate to ``max_sources``.
    """
    seen: set[str] = set()
    merged: list[ResearchSource] = []
    for provider_results in results:
        for source in provider_results:
            if source.id in seen:
                continue
            seen.add(source.id)
            merged.append(source)
    return merged[:max_sources]


class LiteratureAgent(BaseAgent):
    """Search every configured provider concurrently and merge the results.

    Two strategies:
      * ``keywords``  — one fan-out over all providers with the intent's
        flat keyword string.
      * ``waterfall`` — strict query on all providers, then relaxed, then
        the semantic question on the semantic providers only; stops at the
        first tier that yields any source.
    """

    def __init__(
        self,
        providers: list[LiteratureProvider],
        per_provider_limit: int = DEFAULT_PER_PROVIDER_LIMIT,
        max_sources: int = DEFAULT_MAX_SOURCES,
        strategy: str = "keywords",
        provider_timeout: float | None = None,
        language: str = "pt-BR",
    ) -> None:
        self.providers = providers
        self.per_provider_limit = per_provider_limit
        self.max_sources = max_sources
        self.strategy = self._check_strategy(strategy)
        self.provider_timeout = provider_timeout
        self.messages = PROGRESS_MESSAGES.get(
            language, PROGRESS_MESSAGES[DEFAULT_LANGUAGE]
        )

    @staticmethod
    def _check_strategy(strategy: str) -> str:
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown search strategy: {strategy!r}")
        return strategy

    async def _search_one(
        self, provider: LiteratureProvider, query: str
    ) -> list[ResearchSource]:
        if self.provider_timeout is None:
            return await provider.search(query, self.per_provider_limit)
        try:
            return await asyncio.wait_for(
                provider.search(query, self.per_provider_limit),
                timeout=self.provider_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "%s timed out after %.1fs for %r",
                provider.name,
                self.provider_timeout,
                query,
            )
            return []

    async def search_providers(
        self, providers: list[LiteratureProvider], query: str
    ) -> list[ResearchSource]:
        """Fan out one query to ``providers``, wait for all, then merge."""
        results = await asyncio.gather(
            *(self._search_one(provider, query) for provider in providers)
        )
        merged = merge_results(list(results), self.max_sources)
        logger.info(
            "Merged %d sources from %d providers for %r",
            len(merged),
            len(providers),
            query,
        )
        return merged

    async def search(
        self,
        intent: ResearchIntent,
        on_progress: ProgressCallback | None = None,
        strategy: str | None = None,
    ) -> list[ResearchSource]:
        """Run ``strategy`` (default: the agent's own) for ``intent``."""
        strategy = self._check_strategy(strategy or self.strategy)
        if strategy == "waterfall":
            return await self._search_waterfall(intent, on_progress)

        query = intent.keyword_query
        self.emit(on_progress, self.messages["searching"].format(query=query))
        return await self.search_providers(self.providers, query)

    async def _search_waterfall(
        self, intent: ResearchIntent, on_progress: ProgressCallback | None
    ) -> list[ResearchSource]:
        semantic_providers = [p for p in self.providers if p.semantic]
        tiers = [
            ("strict", intent.search_queries.strict, self.providers),
            ("relaxed", intent.search_queries.relaxed, self.providers),
            ("semantic", intent.search_queries.semantic, semantic_providers),
        ]

        sources: list[ResearchSource] = []
        for tier, query, providers in tiers:
            if not providers:
                continue
            self.emit(on_progress, self.messages[tier].format(query=query))
            logger.info("Waterfall tier %s: %s", tier, query)
            sources = await self.search_providers(providers, query)
            if sources:
                break
        return sources

    async def run(self, input_data: dict[str, Any]) -> dict[str, Any]:
        """Search literature for a classified intent."""
        intent = ResearchIntent.model_validate(input_data["intent"])
        sources = await self.search(intent, input_data.get("on_progress"))
        return {"sources": sources}
