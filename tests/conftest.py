"""Pytest configuration and fixtures."""

import pytest

from evidence_scout.models.model_research import (
    IntentType,
    ResearchIntent,
    ResearchSource,
    SearchQueries,
    SourceType,
)
from evidence_scout.services.llm import ChatClient


class ScriptedChatClient(ChatClient):
    """ChatClient that replays canned replies (or raises canned errors)."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls: list[dict] = []

    async def complete(self, model, messages, system=""):
        self.calls.append({"model": model, "messages": messages, "system": system})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def scripted_chat():
    """Factory for ScriptedChatClient instances."""
    return ScriptedChatClient


@pytest.fixture
def heart_failure_intent() -> ResearchIntent:
    """Intent for 'heart failure treatment without beta-blockers'."""
    return ResearchIntent(
        type=IntentType.TREATMENT,
        keywords=["heart failure", "treatment"],
        mesh_terms=["Heart Failure"],
        include_terms=["heart failure"],
        exclude_terms=["Adrenergic beta-Antagonists"],
        search_queries=SearchQueries(
            strict="(Heart Failure[MeSH]) NOT (Adrenergic beta-Antagonists[MeSH])",
            relaxed="Heart Failure[MeSH] AND therapy",
            semantic="What treatments exist for heart failure that avoid beta-blockers?",
        ),
        original_query="heart failure treatment without beta-blockers",
    )


def make_source(
    source_id: str, source: SourceType = SourceType.PUBMED, title: str | None = None
) -> ResearchSource:
    return ResearchSource(
        id=source_id,
        title=title or f"Article {source_id}",
        abstract=f"Abstract for {source_id}.",
        authors=["Smith J"],
        date="2023",
        url=f"https://example.org/{source_id}",
        source=source,
    )


@pytest.fixture
def source_factory():
    """Factory for ResearchSource instances."""
    return make_source
