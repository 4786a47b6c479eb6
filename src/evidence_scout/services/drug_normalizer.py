"""
Drug-name normalizer.

Maps colloquial or brand drug names (e.g., "Dipirona", "Roacutan") to an
RxNorm concept and its MeSH headings (e.g., Metamizole / Dipyrone).

Strategy: cache → RxNav approximate match → LLM translation to the English
generic name → one retry of the RxNav match → cache everything, including
misses.
"""

import logging

from evidence_scout.constants import RXNAV_MIN_NAME_SCORE
from evidence_scout.data_sources.rxnav import RxNavClient
from evidence_scout.models.model_research import DrugNormalization
from evidence_scout.services.llm import ChatClient, user_message

logger = logging.getLogger(__name__)

TRANSLATE_PROMPT = (
    "You are an expert Pharmacologist Assistant.\n"
    "Translate a Brazilian drug brand name (or common term) into its standard "
    "English generic name. The user is searching a medical database.\n\n"
    "Examples:\n"
    'Input: "Roacutan" → Output: "Isotretinoin"\n'
    'Input: "Dipirona" → Output: "Metamizole"\n'
    'Input: "Aspirina" → Output: "Aspirin"\n'
    'Input: "Tylenol" → Output: "Acetaminophen"\n\n'
    "Return ONLY the generic name. No markdown, no punctuation. "
    "If you don't know, return the input string."
)


def clean_translation(response: str) -> str:
    """Strip quotes, whitespace and a trailing period from a model reply."""
    return response.strip().replace('"', "").replace("'", "").removesuffix(".").strip()


class DrugNameNormalizer:
    """RxNorm-backed normalizer with a session-scoped in-memory cache.

    The cache has no TTL or eviction: entries live as long as the instance.
    Negative results are cached too. Concurrent lookups of the same uncached
    term may both hit the network; the last write wins.
    """

    def __init__(
        self,
        rxnav: RxNavClient,
        chat_client: ChatClient | None = None,
        translation_model: str = "",
    ) -> None:
        self.rxnav = rxnav
        self.chat_client = chat_client
        self.translation_model = translation_model
        self._cache: dict[str, DrugNormalization | None] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    async def normalize(self, term: str) -> DrugNormalization | None:
        """Return the canonical drug identity for ``term``, or None; never raises."""
        key = term.strip()
        if not key:
            return None

        if key in self._cache:
            logger.debug("Cache hit for drug normalization: %s", key)
            return self._cache[key]

        try:
            result = await self._lookup(key)
            if result is None:
                translated = await self._translate(key)
                if translated and translated.lower() != key.lower():
                    logger.info("Translated %r → %r, retrying RxNav", key, translated)
                    result = await self._lookup(translated)
        except Exception as e:
            logger.warning("Drug normalization failed for %r: %s", key, e)
            return None

        self._cache[key] = result
        if result:
            logger.info("Normalized %r → %s (RxCUI %s)", key, result.name, result.rxcui)
        return result

    async def _lookup(self, term: str) -> DrugNormalization | None:
        candidate = await self.rxnav.approximate_term(term)
        if candidate is None:
            return None

        score = float(candidate.get("score") or 0)
        rxcui = str(candidate["rxcui"])
        mesh_terms = await self.rxnav.get_mesh_terms(rxcui)
        name = candidate.get("name") if score > RXNAV_MIN_NAME_SCORE else None

        return DrugNormalization(
            rxcui=rxcui,
            name=name or term,
            score=score,
            mesh_terms=mesh_terms,
        )

    async def _translate(self, term: str) -> str | None:
        if self.chat_client is None:
            return None
        try:
            response = await self.chat_client.complete(
                self.translation_model, [user_message(term)], TRANSLATE_PROMPT
            )
        except Exception as e:
            logger.warning("Drug-name translation failed for %r: %s", term, e)
            return None
        return clean_translation(response) or None
