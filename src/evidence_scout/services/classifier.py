"""
Intent classifier for clinical questions.

One LLM round-trip turns a free-text (often Portuguese) question into a
ResearchIntent: category, English keywords, MeSH terms, inclusion and
exclusion terms, and three tiers of search strings. Any failure yields a
deterministic fallback intent built from the raw question.
"""

import logging

from evidence_scout.models.model_research import ResearchIntent
from evidence_scout.services.llm import ChatClient, extract_json_object, user_message

logger = logging.getLogger(__name__)

CLASSIFIER_SYSTEM_PROMPT = """You are an expert Medical Research Librarian.
Analyze the user's clinical question and build a literature search strategy.

OUTPUT FORMAT:
Return ONLY a raw JSON object (no markdown, no code fences, no commentary):
{
  "type": "diagnosis" | "treatment" | "pharmacology" | "guideline" | "general",
  "keywords": ["english", "search", "keywords"],
  "mesh_terms": ["Formal MeSH Heading"],
  "include_terms": ["concepts that must be present"],
  "exclude_terms": ["concepts the user asked to exclude"],
  "search_queries": {
    "strict": "boolean PubMed query with MeSH terms and NOT exclusions",
    "relaxed": "boolean PubMed query with the main concepts only, no exclusions",
    "semantic": "a natural-language English question"
  }
}

RULES:
1. Translate the question to English before extracting anything; every field must be in English.
2. "mesh_terms" must be formal MeSH headings (e.g. "Heart Failure", "Adrenergic beta-Antagonists").
3. "keywords" are 2-5 English terms ordered by importance.
4. Negation cues ("sem", "without", "except", "exceto", "não usar") become "exclude_terms"
   and a NOT clause in the strict query, e.g. (Heart Failure[MeSH]) NOT (Adrenergic beta-Antagonists[MeSH]).
5. The relaxed query drops every NOT clause.
6. All three search_queries must be non-empty."""


class IntentClassifier:
    """Classify a clinical question into a ResearchIntent via a single LLM call."""

    def __init__(self, chat_client: ChatClient, model: str) -> None:
        self.chat_client = chat_client
        self.model = model

    def _build_prompt(self, query: str, context: str | None) -> str:
        if context:
            return f"{query}\n\nNormalized drug context (RxNorm/MeSH): {context}"
        return query

    async def classify(self, query: str, context: str | None = None) -> ResearchIntent:
        """Return the structured intent for ``query``.

        Classification failures never raise; they yield the fallback intent.
        A blank question is rejected with ValueError before any LLM call,
        since no search string can be built from it.
        """
        query = query.strip()
        if not query:
            raise ValueError("query must be non-empty")

        try:
            response = await self.chat_client.complete(
                self.model,
                [user_message(self._build_prompt(query, context))],
                CLASSIFIER_SYSTEM_PROMPT,
            )
            parsed = extract_json_object(response)
            if isinstance(parsed.get("type"), str):
                parsed["type"] = parsed["type"].strip().lower()
            intent = ResearchIntent.model_validate(
                {**parsed, "original_query": query}
            )
        except Exception as e:
            logger.warning("Classifier failed for %r, using fallback: %s", query, e)
            return ResearchIntent.fallback(query)

        logger.info(
            "Classified %r as %s (keywords=%s, exclude=%s)",
            query,
            intent.type.value,
            intent.keywords,
            intent.exclude_terms,
        )
        return intent
