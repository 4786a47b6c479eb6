"""Research orchestrator: classify → search → synthesize.

States: IDLE → (NORMALIZING) → CLASSIFYING → SEARCHING → SYNTHESIZING →
DONE | FAILED. Each transition emits a progress line through the optional
callback. Partial provider failure is absorbed by the providers; a failed
search fan-out or synthesis call is propagated to the caller.
"""

import logging
from enum import Enum
from typing import Any

from evidence_scout.agents.base import BaseAgent, ProgressCallback
from evidence_scout.agents.literature import LiteratureAgent
from evidence_scout.config import Settings, get_settings
from evidence_scout.constants import (
    DEFAULT_LANGUAGE,
    NO_EVIDENCE_MESSAGES,
    PROGRESS_MESSAGES,
    PROVIDER_TIMEOUT_MAX,
)
from evidence_scout.data_sources.base_provider import LiteratureProvider
from evidence_scout.data_sources.openalex import OpenAlexClient
from evidence_scout.data_sources.pubmed import PubMedClient
from evidence_scout.data_sources.rxnav import RxNavClient
from evidence_scout.data_sources.semantic_scholar import SemanticScholarClient
from evidence_scout.models.model_research import ResearchResult
from evidence_scout.services.classifier import IntentClassifier
from evidence_scout.services.drug_normalizer import DrugNameNormalizer
from evidence_scout.services.llm import ChatClient, build_chat_client
from evidence_scout.services.synthesis import Synthesizer

logger = logging.getLogger(__name__)


class OrchestratorState(str, Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    CLASSIFYING = "classifying"
    SEARCHING = "searching"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


class ResearchOrchestrator(BaseAgent):
    """Coordinates the classifier, the literature agent and the synthesizer.

    Collaborators are injected so the pipeline can be exercised without the
    network; ``build_orchestrator`` wires the production ones from settings.
    ``close`` releases the providers and ``chat_client``; pass a chat client
    only when the orchestrator owns it.
    """

    def __init__(
        self,
        classifier: IntentClassifier,
        literature: LiteratureAgent,
        synthesizer: Synthesizer,
        normalizer: DrugNameNormalizer | None = None,
        language: str = "pt-BR",
        chat_client: ChatClient | None = None,
    ) -> None:
        self.classifier = classifier
        self.literature = literature
        self.synthesizer = synthesizer
        self.normalizer = normalizer
        self.language = language
        self.messages = PROGRESS_MESSAGES.get(
            language, PROGRESS_MESSAGES[DEFAULT_LANGUAGE]
        )
        self._chat_client = chat_client

    @property
    def no_evidence_message(self) -> str:
        return NO_EVIDENCE_MESSAGES.get(
            self.language, NO_EVIDENCE_MESSAGES[DEFAULT_LANGUAGE]
        )

    def _transition(
        self,
        state: OrchestratorState,
        on_progress: ProgressCallback | None,
        status: str,
    ) -> OrchestratorState:
        logger.info("Orchestrator → %s", state.value)
        self.emit(on_progress, status)
        return state

    async def _drug_context(
        self, query: str, on_progress: ProgressCallback | None
    ) -> str:
        if self.normalizer is None:
            return ""
        self._transition(
            OrchestratorState.NORMALIZING, on_progress, self.messages["normalizing"]
        )
        normalization = await self.normalizer.normalize(query)
        return normalization.context if normalization else ""

    async def orchestrate_research(
        self,
        query: str,
        on_progress: ProgressCallback | None = None,
        strategy: str | None = None,
    ) -> ResearchResult:
        """Answer ``query`` with a cited synthesis of the retrieved literature.

        ``strategy`` overrides the literature agent's default for this call.
        Raises ValueError for a blank query, SynthesisError when the final
        LLM call fails; any other exception from the search fan-out is
        re-raised unchanged.
        """
        query = query.strip()
        if not query:
            raise ValueError("query must be non-empty")

        state = OrchestratorState.IDLE
        try:
            drug_context = await self._drug_context(query, on_progress)

            state = self._transition(
                OrchestratorState.CLASSIFYING, on_progress, self.messages["classifying"]
            )
            intent = await self.classifier.classify(query, drug_context or None)

            # The literature agent emits its own per-query progress lines.
            state = OrchestratorState.SEARCHING
            logger.info("Orchestrator → %s", state.value)
            sources = await self.literature.search(intent, on_progress, strategy)

            if not sources:
                self._transition(
                    OrchestratorState.DONE, on_progress, self.messages["no_evidence"]
                )
                return ResearchResult(
                    answer=self.no_evidence_message, sources=[], intent=intent
                )

            state = self._transition(
                OrchestratorState.SYNTHESIZING,
                on_progress,
                self.messages["synthesizing"].format(count=len(sources)),
            )
            answer = await self.synthesizer.synthesize(intent, sources, drug_context)

        except Exception:
            logger.exception(
                "Orchestrator → %s (during %s)", OrchestratorState.FAILED.value, state.value
            )
            raise

        self._transition(OrchestratorState.DONE, on_progress, self.messages["done"])
        return ResearchResult(answer=answer, sources=sources, intent=intent)

    async def run(self, input_data: dict[str, Any]) -> dict[str, Any]:
        """Execute orchestrated research for ``input_data["query"]``."""
        result = await self.orchestrate_research(
            input_data["query"], input_data.get("on_progress")
        )
        return result.model_dump(mode="json")

    async def close(self) -> None:
        for provider in self.literature.providers:
            await provider.close()
        if self._chat_client is not None:
            await self._chat_client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()


def build_providers(settings: Settings) -> list[LiteratureProvider]:
    timeout = settings.search_timeout_seconds
    providers: list[LiteratureProvider] = [
        PubMedClient(api_key=settings.ncbi_api_key, timeout_seconds=timeout),
        OpenAlexClient(mailto=settings.openalex_mailto, timeout_seconds=timeout),
    ]
    if settings.enable_semantic_scholar:
        providers.append(
            SemanticScholarClient(
                api_key=settings.semantic_scholar_api_key, timeout_seconds=timeout
            )
        )
    return providers


def build_orchestrator(
    settings: Settings | None = None,
    *,
    strategy: str | None = None,
    chat_client: ChatClient | None = None,
) -> ResearchOrchestrator:
    """Wire the production pipeline from settings."""
    settings = settings or get_settings()
    # A caller-supplied chat client stays open when the orchestrator closes.
    owned_chat_client = build_chat_client(settings) if chat_client is None else None
    chat_client = chat_client or owned_chat_client

    normalizer = None
    if settings.enable_drug_normalization:
        normalizer = DrugNameNormalizer(
            RxNavClient(),
            chat_client=chat_client,
            translation_model=settings.translation_model,
        )

    return ResearchOrchestrator(
        classifier=IntentClassifier(chat_client, settings.classifier_model),
        literature=LiteratureAgent(
            build_providers(settings),
            per_provider_limit=settings.per_provider_limit,
            max_sources=settings.max_sources,
            strategy=strategy or settings.search_strategy,
            # Covers both PubMed round-trips plus one backoff.
            provider_timeout=min(
                settings.search_timeout_seconds * 2, PROVIDER_TIMEOUT_MAX
            ),
            language=settings.response_language,
        ),
        synthesizer=Synthesizer(
            chat_client,
            settings.synthesis_model,
            language=settings.response_language,
            max_retries=settings.llm_max_retries,
        ),
        normalizer=normalizer,
        language=settings.response_language,
        chat_client=owned_chat_client,
    )
