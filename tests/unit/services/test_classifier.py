"""Unit tests for IntentClassifier."""

import json

import pytest

from evidence_scout.models.model_research import IntentType
from evidence_scout.services.classifier import CLASSIFIER_SYSTEM_PROMPT, IntentClassifier
from evidence_scout.services.llm import LLMError

QUERY = "tratamento de insuficiência cardíaca sem betabloqueadores"

CLASSIFIER_REPLY = {
    "type": "Treatment",
    "keywords": ["heart failure", "treatment", "heart failure"],
    "mesh_terms": ["Heart Failure"],
    "include_terms": ["heart failure"],
    "exclude_terms": ["Adrenergic beta-Antagonists"],
    "search_queries": {
        "strict": "(Heart Failure[MeSH]) NOT (Adrenergic beta-Antagonists[MeSH])",
        "relaxed": "Heart Failure[MeSH] AND therapy",
        "semantic": "How is heart failure treated without beta-blockers?",
    },
}


async def test_classify_parses_reply_with_preamble(scripted_chat):
    chat = scripted_chat("Sure! " + json.dumps(CLASSIFIER_REPLY))
    classifier = IntentClassifier(chat, "classifier-model")

    intent = await classifier.classify(QUERY)

    assert intent.type == IntentType.TREATMENT
    assert intent.keywords == ["heart failure", "treatment"]
    assert intent.exclude_terms == ["Adrenergic beta-Antagonists"]
    assert "NOT" in intent.search_queries.strict
    assert "NOT" not in intent.search_queries.relaxed
    assert intent.original_query == QUERY

    [call] = chat.calls
    assert call["model"] == "classifier-model"
    assert call["system"] == CLASSIFIER_SYSTEM_PROMPT
    assert call["messages"] == [{"role": "user", "content": QUERY}]


async def test_classify_includes_drug_context(scripted_chat):
    chat = scripted_chat(json.dumps(CLASSIFIER_REPLY))
    classifier = IntentClassifier(chat, "m")

    await classifier.classify("dipirona para dor", context="Metamizole (MeSH: Dipyrone)")

    content = chat.calls[0]["messages"][0]["content"]
    assert content.startswith("dipirona para dor")
    assert "Metamizole (MeSH: Dipyrone)" in content


async def test_reply_cannot_override_original_query(scripted_chat):
    reply = {**CLASSIFIER_REPLY, "original_query": "something else"}
    classifier = IntentClassifier(scripted_chat(json.dumps(reply)), "m")

    intent = await classifier.classify(QUERY)

    assert intent.original_query == QUERY


async def test_fallback_on_non_json_reply(scripted_chat):
    classifier = IntentClassifier(scripted_chat("I am not sure."), "m")

    intent = await classifier.classify(QUERY)

    assert intent.type == IntentType.GENERAL
    assert intent.keywords == [QUERY]
    assert intent.exclude_terms == []
    assert intent.search_queries.strict == QUERY
    assert intent.search_queries.relaxed == QUERY
    assert intent.search_queries.semantic == QUERY


async def test_fallback_on_invalid_type(scripted_chat):
    reply = {**CLASSIFIER_REPLY, "type": "astrology"}
    classifier = IntentClassifier(scripted_chat(json.dumps(reply)), "m")

    intent = await classifier.classify(QUERY)

    assert intent.type == IntentType.GENERAL
    assert intent.original_query == QUERY


async def test_fallback_on_blank_search_query(scripted_chat):
    reply = {
        **CLASSIFIER_REPLY,
        "search_queries": {**CLASSIFIER_REPLY["search_queries"], "relaxed": "  "},
    }
    classifier = IntentClassifier(scripted_chat(json.dumps(reply)), "m")

    intent = await classifier.classify(QUERY)

    assert intent.type == IntentType.GENERAL


async def test_fallback_on_llm_error(scripted_chat):
    classifier = IntentClassifier(scripted_chat(LLMError("HTTP 500", 500)), "m")

    intent = await classifier.classify(QUERY)

    assert intent.type == IntentType.GENERAL
    assert intent.keywords == [QUERY]


async def test_padded_query_is_stripped_in_fallback(scripted_chat):
    classifier = IntentClassifier(scripted_chat("not json"), "m")

    intent = await classifier.classify("  heart failure \n")

    assert intent.original_query == "heart failure"
    assert intent.keywords == [intent.original_query]
    queries = intent.search_queries
    assert queries.strict == queries.relaxed == queries.semantic == intent.original_query


async def test_padded_query_is_stripped_on_success(scripted_chat):
    chat = scripted_chat(json.dumps(CLASSIFIER_REPLY))
    classifier = IntentClassifier(chat, "m")

    intent = await classifier.classify(f"  {QUERY}  ")

    assert intent.original_query == QUERY
    assert chat.calls[0]["messages"][0]["content"] == QUERY


@pytest.mark.parametrize("query", ["", "   ", "\n\t"])
async def test_blank_query_rejected_before_llm_call(scripted_chat, query):
    chat = scripted_chat(LLMError("down", 503))
    classifier = IntentClassifier(chat, "m")

    with pytest.raises(ValueError, match="non-empty"):
        await classifier.classify(query)

    assert chat.calls == []
