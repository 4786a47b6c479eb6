"""Unit tests for the synthesis step."""

from unittest.mock import AsyncMock, patch

import pytest

from evidence_scout.services.llm import LLMError
from evidence_scout.services.synthesis import (
    SynthesisError,
    Synthesizer,
    build_context_block,
    build_synthesis_prompt,
)


class TestBuildContextBlock:
    def test_numbers_sources_from_one(self, source_factory):
        block = build_context_block([source_factory("111"), source_factory("222")])

        first, second = block.split("\n---\n")
        assert first.startswith("[Source 1]\nTitle: Article 111\n")
        assert "ID: 111\n" in first
        assert "URL: https://example.org/111" in first
        assert "Authors: Smith J" in first
        assert second.startswith("[Source 2]")

    def test_truncates_long_abstracts(self, source_factory):
        source = source_factory("111").model_copy(update={"abstract": "x" * 1500})

        block = build_context_block([source])

        assert "Abstract: " + "x" * 1000 + "...\n" in block
        assert "x" * 1001 not in block

    def test_short_abstract_untouched(self, source_factory):
        block = build_context_block([source_factory("111")])
        assert "Abstract: Abstract for 111.\n" in block


def test_prompt_mentions_language_bounds_and_exclusions(
    heart_failure_intent, source_factory
):
    sources = [source_factory(str(i)) for i in range(3)]

    prompt = build_synthesis_prompt(
        heart_failure_intent, sources, "pt-BR", drug_context="x (MeSH: y)"
    )

    assert "Portuguese (pt-BR)" in prompt
    assert "between 1 and 3" in prompt
    assert "Adrenergic beta-Antagonists" in prompt
    assert 'CONTEXT (RxNorm/MeSH): "x (MeSH: y)"' in prompt
    assert heart_failure_intent.original_query in prompt
    assert "[Source 3]" in prompt


def test_unknown_language_falls_back_to_english(heart_failure_intent, source_factory):
    prompt = build_synthesis_prompt(heart_failure_intent, [source_factory("1")], "xx")
    assert "answer in English" in prompt


class TestSynthesizer:
    async def test_returns_answer(self, scripted_chat, heart_failure_intent, source_factory):
        chat = scripted_chat("Use SGLT2 inhibitors [1].")
        synthesizer = Synthesizer(chat, "synth-model", language="en")

        answer = await synthesizer.synthesize(
            heart_failure_intent, [source_factory("111")]
        )

        assert answer == "Use SGLT2 inhibitors [1]."
        [call] = chat.calls
        assert call["model"] == "synth-model"
        assert "[Source 1]" in call["system"]

    async def test_failure_raises_synthesis_error(
        self, scripted_chat, heart_failure_intent, source_factory
    ):
        chat = scripted_chat(LLMError("bad request", 400))
        synthesizer = Synthesizer(chat, "m", max_retries=2)

        with pytest.raises(SynthesisError, match="bad request") as exc_info:
            await synthesizer.synthesize(heart_failure_intent, [source_factory("1")])

        assert exc_info.value.status_code == 400
        assert len(chat.calls) == 1

    async def test_retries_transient_failure(
        self, scripted_chat, heart_failure_intent, source_factory
    ):
        chat = scripted_chat(LLMError("overloaded", 503), "ok [1]")
        synthesizer = Synthesizer(chat, "m", max_retries=2)

        with patch("evidence_scout.services.llm.asyncio.sleep", new_callable=AsyncMock):
            answer = await synthesizer.synthesize(
                heart_failure_intent, [source_factory("1")]
            )

        assert answer == "ok [1]"
        assert len(chat.calls) == 2
