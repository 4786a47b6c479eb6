"""Integration tests for the literature providers."""

import pytest

from evidence_scout.models.model_research import SourceType

pytestmark = pytest.mark.integration


async def test_pubmed_returns_relevance_ordered_sources(pubmed_client):
    sources = await pubmed_client.search("dapagliflozin heart failure", 5)

    assert 0 < len(sources) <= 5
    for source in sources:
        assert source.id.isdigit()
        assert source.source == SourceType.PUBMED
        assert source.url == f"https://pubmed.ncbi.nlm.nih.gov/{source.id}/"
        assert len(source.authors) <= 3


async def test_pubmed_known_trial(pubmed_client):
    """DAPA-HF (PMID 31535829) must surface for its own title."""
    sources = await pubmed_client.search(
        "Dapagliflozin in Patients with Heart Failure and Reduced Ejection Fraction", 5
    )
    assert "31535829" in [s.id for s in sources]


async def test_openalex_reconstructs_abstracts(openalex_client):
    sources = await openalex_client.search("SGLT2 inhibitors heart failure", 5)

    assert 0 < len(sources) <= 5
    for source in sources:
        assert source.id.startswith("W")
        assert source.source == SourceType.OPENALEX
        assert source.abstract != "abstract unavailable"
        assert len(source.authors) <= 5


async def test_semantic_scholar_search(semantic_scholar_client):
    sources = await semantic_scholar_client.search("heart failure beta blockers", 3)

    # Unauthenticated calls are often throttled; an empty list is a valid answer.
    assert len(sources) <= 3
    for source in sources:
        assert source.source == SourceType.SEMANTIC_SCHOLAR


async def test_nonsense_query_is_empty_not_error(pubmed_client):
    assert await pubmed_client.search("qzxqzxqzx zzvvqq", 5) == []
