"""Unit tests for DrugNameNormalizer."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from evidence_scout.data_sources.base_client import DataSourceError
from evidence_scout.data_sources.rxnav import RxNavClient
from evidence_scout.services.drug_normalizer import DrugNameNormalizer, clean_translation
from evidence_scout.services.llm import LLMError

METAMIZOLE = {"rxcui": "6871", "name": "metamizole", "score": "100"}


@pytest.fixture
def rxnav():
    client = MagicMock(spec=RxNavClient)
    client.approximate_term = AsyncMock(return_value=METAMIZOLE)
    client.get_mesh_terms = AsyncMock(return_value=["Dipyrone"])
    return client


@pytest.mark.parametrize(
    "reply, expected",
    [
        ("Isotretinoin", "Isotretinoin"),
        ('  "Metamizole".\n', "Metamizole"),
        ("'Aspirin'", "Aspirin"),
    ],
)
def test_clean_translation(reply, expected):
    assert clean_translation(reply) == expected


async def test_normalize_direct_match(rxnav):
    normalizer = DrugNameNormalizer(rxnav)

    result = await normalizer.normalize("Dipirona")

    assert result.rxcui == "6871"
    assert result.name == "metamizole"
    assert result.score == 100.0
    assert result.mesh_terms == ["Dipyrone"]
    assert result.context == "metamizole (MeSH: Dipyrone)"
    rxnav.get_mesh_terms.assert_awaited_once_with("6871")


async def test_second_call_served_from_cache(rxnav):
    normalizer = DrugNameNormalizer(rxnav)

    first = await normalizer.normalize("Dipirona")
    second = await normalizer.normalize(" Dipirona ")

    assert first == second
    rxnav.approximate_term.assert_awaited_once()


async def test_clear_cache_forces_lookup(rxnav):
    normalizer = DrugNameNormalizer(rxnav)
    await normalizer.normalize("Dipirona")

    normalizer.clear_cache()
    await normalizer.normalize("Dipirona")

    assert rxnav.approximate_term.await_count == 2


async def test_low_score_keeps_input_term(rxnav):
    rxnav.approximate_term.return_value = {"rxcui": "1", "name": "other", "score": "50"}
    normalizer = DrugNameNormalizer(rxnav)

    result = await normalizer.normalize("Novalgina")

    assert result.name == "Novalgina"
    assert result.rxcui == "1"


async def test_translation_retry_on_miss(rxnav, scripted_chat):
    rxnav.approximate_term.side_effect = [None, METAMIZOLE]
    chat = scripted_chat('"Metamizole"')
    normalizer = DrugNameNormalizer(rxnav, chat_client=chat, translation_model="t")

    result = await normalizer.normalize("Dipirona")

    assert result.name == "metamizole"
    assert [c.args[0] for c in rxnav.approximate_term.await_args_list] == [
        "Dipirona",
        "Metamizole",
    ]
    assert chat.calls[0]["model"] == "t"
    assert chat.calls[0]["messages"][0]["content"] == "Dipirona"


async def test_identical_translation_skips_retry(rxnav, scripted_chat):
    rxnav.approximate_term.return_value = None
    normalizer = DrugNameNormalizer(rxnav, chat_client=scripted_chat("xyzzy"))

    assert await normalizer.normalize("xyzzy") is None
    rxnav.approximate_term.assert_awaited_once()


async def test_negative_result_is_cached(rxnav):
    rxnav.approximate_term.return_value = None
    normalizer = DrugNameNormalizer(rxnav)

    assert await normalizer.normalize("unknownium") is None
    assert await normalizer.normalize("unknownium") is None

    rxnav.approximate_term.assert_awaited_once()


async def test_translation_failure_is_a_miss(rxnav, scripted_chat):
    rxnav.approximate_term.return_value = None
    normalizer = DrugNameNormalizer(
        rxnav, chat_client=scripted_chat(LLMError("HTTP 500", 500))
    )

    assert await normalizer.normalize("Dipirona") is None


async def test_unexpected_failure_returns_none_and_is_not_cached(rxnav):
    rxnav.approximate_term.side_effect = [RuntimeError("boom"), METAMIZOLE]
    normalizer = DrugNameNormalizer(rxnav)

    assert await normalizer.normalize("Dipirona") is None
    assert (await normalizer.normalize("Dipirona")).rxcui == "6871"


async def test_blank_term(rxnav):
    normalizer = DrugNameNormalizer(rxnav)

    assert await normalizer.normalize("   ") is None
    rxnav.approximate_term.assert_not_called()


async def test_rxnav_outage_is_not_cached(rxnav):
    rxnav.approximate_term.side_effect = [
        DataSourceError("rxnav", "HTTP 503", status_code=503),
        METAMIZOLE,
    ]
    normalizer = DrugNameNormalizer(rxnav)

    assert await normalizer.normalize("Dipirona") is None
    assert (await normalizer.normalize("Dipirona")).name == "metamizole"
    assert rxnav.approximate_term.await_count == 2
