"""Data models for EvidenceScout."""

from evidence_scout.models.model_research import (
    DrugNormalization,
    IntentType,
    ResearchIntent,
    ResearchResult,
    ResearchSource,
    SearchQueries,
    SourceType,
)

__all__ = [
    "DrugNormalization",
    "IntentType",
    "ResearchIntent",
    "ResearchResult",
    "ResearchSource",
    "SearchQueries",
    "SourceType",
]
