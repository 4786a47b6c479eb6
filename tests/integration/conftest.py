"""Shared fixtures for integration tests.

These hit live services and are deselected by default; run them with
``pytest -m integration``.
"""

import pytest

from evidence_scout.agents.orchestrator import build_orchestrator
from evidence_scout.config import get_settings
from evidence_scout.data_sources.openalex import OpenAlexClient
from evidence_scout.data_sources.pubmed import PubMedClient
from evidence_scout.data_sources.rxnav import RxNavClient
from evidence_scout.data_sources.semantic_scholar import SemanticScholarClient


@pytest.fixture
async def pubmed_client():
    """Create and tear down a PubMedClient."""
    c = PubMedClient(api_key=get_settings().ncbi_api_key)
    yield c
    await c.close()


@pytest.fixture
async def openalex_client():
    """Create and tear down an OpenAlexClient."""
    c = OpenAlexClient(mailto=get_settings().openalex_mailto)
    yield c
    await c.close()


@pytest.fixture
async def semantic_scholar_client():
    """Create and tear down a SemanticScholarClient."""
    c = SemanticScholarClient(api_key=get_settings().semantic_scholar_api_key)
    yield c
    await c.close()


@pytest.fixture
def rxnav_client():
    return RxNavClient()


@pytest.fixture
async def orchestrator():
    """Production orchestrator; skipped when no LLM key is configured."""
    settings = get_settings()
    if not (settings.anthropic_api_key or settings.openrouter_api_key):
        pytest.skip("No LLM API key set, skipping end-to-end test")
    o = build_orchestrator(settings)
    yield o
    await o.close()
