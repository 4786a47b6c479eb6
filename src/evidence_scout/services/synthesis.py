"""Evidence synthesis: numbered context block, prompt, and the final LLM call."""

import logging

from evidence_scout.constants import (
    CONTEXT_ABSTRACT_MAX_CHARS,
    DEFAULT_LANGUAGE,
    LANGUAGE_NAMES,
)
from evidence_scout.models.model_research import ResearchIntent, ResearchSource
from evidence_scout.services.llm import (
    ChatClient,
    LLMError,
    complete_with_retry,
    user_message,
)

logger = logging.getLogger(__name__)

SYNTHESIS_USER_MESSAGE = (
    "Please synthesize the Clinical Bottom Line and the detailed answer, "
    "including dosages where the evidence reports them."
)


class SynthesisError(LLMError):
    """The synthesis LLM call failed; fatal for the orchestration request."""


def _truncate(text: str, limit: int = CONTEXT_ABSTRACT_MAX_CHARS) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def build_context_block(sources: list[ResearchSource]) -> str:
    """Enumerate sources as ``[Source N]`` blocks; N is the citation number."""
    blocks = []
    for i, source in enumerate(sources, start=1):
        blocks.append(
            f"[Source {i}]\n"
            f"Title: {source.title}\n"
            f"Date: {source.date}\n"
            f"Authors: {', '.join(source.authors)}\n"
            f"Abstract: {_truncate(source.abstract)}\n"
            f"ID: {source.id}\n"
            f"URL: {source.url}\n"
        )
    return "\n---\n".join(blocks)


def build_synthesis_prompt(
    intent: ResearchIntent,
    sources: list[ResearchSource],
    language: str,
    drug_context: str = "",
) -> str:
    language_name = LANGUAGE_NAMES.get(language, LANGUAGE_NAMES[DEFAULT_LANGUAGE])
    exclusions = ", ".join(intent.exclude_terms) or "none"

    return f"""You are an elite Evidence-Based Medicine Assistant.
Answer the clinical question with a structured critical appraisal of the evidence below.

QUESTION: "{intent.original_query}"
CONTEXT (RxNorm/MeSH): "{drug_context}"
EXCLUDED BY THE USER: {exclusions}

INSTRUCTIONS:
1. **Language**: answer in {language_name}.
2. **Structure**:
   * **Clinical Bottom Line**: a direct, actionable answer (2-3 sentences).
   * **Evidence Quality**: state how strong the supporting evidence is.
   * **Pathophysiology/Context**: briefly define the condition or context.
   * **Pharmacological Treatment**: group by drug class when relevant.
   * **Dosage & Titration**: explicitly state starting doses, target doses and titration steps when the sources report them.
   * **Non-Pharmacological** and **Emerging Therapies** when relevant.
3. **Citations**: MANDATORY inline citations [1], [2], ... where [N] is the number of [Source N] below.
   Cite only numbers between 1 and {len(sources)}. Never cite anything outside the provided sources.
4. **Insufficient evidence**: if the sources do not answer the question, say so explicitly. Do not fabricate findings.
5. **Negation**: if the user asked to avoid something ("without X"), respect that constraint and focus on alternatives.

EVIDENCE:
{build_context_block(sources)}"""


class Synthesizer:
    """Compose a cited answer from the retrieved sources."""

    def __init__(
        self,
        chat_client: ChatClient,
        model: str,
        language: str = "pt-BR",
        max_retries: int = 2,
    ) -> None:
        self.chat_client = chat_client
        self.model = model
        self.language = language
        self.max_retries = max_retries

    async def synthesize(
        self,
        intent: ResearchIntent,
        sources: list[ResearchSource],
        drug_context: str = "",
    ) -> str:
        """Return the markdown answer. Raises SynthesisError on failure."""
        system = build_synthesis_prompt(intent, sources, self.language, drug_context)
        try:
            answer = await complete_with_retry(
                self.chat_client,
                self.model,
                [user_message(SYNTHESIS_USER_MESSAGE)],
                system,
                max_retries=self.max_retries,
            )
        except LLMError as e:
            logger.error("Synthesis failed for %r: %s", intent.original_query, e)
            raise SynthesisError(str(e), e.status_code) from e

        logger.info(
            "Synthesized %d chars from %d sources", len(answer), len(sources)
        )
        return answer
