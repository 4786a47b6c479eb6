"""End-to-end research runs against live providers and the configured LLM."""

import re

import pytest

pytestmark = pytest.mark.integration


async def test_heart_failure_without_beta_blockers(orchestrator):
    statuses = []

    result = await orchestrator.orchestrate_research(
        "tratamento de insuficiência cardíaca sem betabloqueadores", statuses.append
    )

    assert result.sources
    assert len(result.sources) <= 10
    assert len({s.id for s in result.sources}) == len(result.sources)
    cited = {int(n) for n in re.findall(r"\[(\d+)\]", result.answer)}
    assert cited
    assert all(1 <= n <= len(result.sources) for n in cited)
    assert statuses
