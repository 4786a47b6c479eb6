"""Research pipeline data models.

All of these are request-scoped value objects: created per call to
``ResearchOrchestrator.orchestrate_research`` and handed to the caller.
"""

from enum import Enum

from pydantic import BaseModel, field_validator, model_validator

from evidence_scout.constants import NO_ABSTRACT, NO_TITLE, UNKNOWN_DATE


class IntentType(str, Enum):
    DIAGNOSIS = "diagnosis"
    TREATMENT = "treatment"
    PHARMACOLOGY = "pharmacology"
    GUIDELINE = "guideline"
    GENERAL = "general"


class SourceType(str, Enum):
    PUBMED = "PubMed"
    OPENALEX = "OpenAlex"
    SEMANTIC_SCHOLAR = "SemanticScholar"
    NICE = "NICE"
    OTHER = "Other"


def _unique(values: list[str]) -> list[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen[value] = None
    return list(seen)


class SearchQueries(BaseModel):
    """Three tiers of search strings produced by the classifier."""

    strict: str
    relaxed: str
    semantic: str

    @field_validator("strict", "relaxed", "semantic")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("search query must be non-empty")
        return value

    @classmethod
    def uniform(cls, query: str) -> "SearchQueries":
        return cls(strict=query, relaxed=query, semantic=query)


class ResearchIntent(BaseModel):
    """Structured reading of a free-text clinical question."""

    type: IntentType = IntentType.GENERAL
    keywords: list[str] = []
    mesh_terms: list[str] = []
    include_terms: list[str] = []
    exclude_terms: list[str] = []
    search_queries: SearchQueries
    original_query: str

    @field_validator("keywords", "mesh_terms", "include_terms", "exclude_terms")
    @classmethod
    def dedupe_terms(cls, values: list[str]) -> list[str]:
        return _unique(values)

    @classmethod
    def fallback(cls, query: str) -> "ResearchIntent":
        """Deterministic intent used whenever classification fails."""
        return cls(
            type=IntentType.GENERAL,
            keywords=[query],
            search_queries=SearchQueries.uniform(query),
            original_query=query,
        )

    @property
    def keyword_query(self) -> str:
        """Flat keyword string used by the default search strategy."""
        return " ".join(self.keywords) or self.original_query


class ResearchSource(BaseModel):
    """A single literature record returned by a provider.

    ``id`` is provider-scoped (PMID, OpenAlex work id, Semantic Scholar paper
    id) and is the dedup key across merged provider results.
    """

    id: str
    title: str = NO_TITLE
    abstract: str = NO_ABSTRACT
    authors: list[str] = []
    date: str = UNKNOWN_DATE
    url: str = ""
    source: SourceType = SourceType.OTHER

    @model_validator(mode="before")
    @classmethod
    def coerce_nones(cls, values: dict) -> dict:
        if not isinstance(values, dict):
            return values
        values = dict(values)
        for field_name, field_info in cls.model_fields.items():
            if field_info.is_required() or field_info.default in (None, ""):
                continue
            if values.get(field_name) in (None, ""):
                values[field_name] = field_info.default
        return values


class ResearchResult(BaseModel):
    """Final answer with its numbered sources; ``sources[i]`` is citation ``[i + 1]``."""

    answer: str
    sources: list[ResearchSource] = []
    intent: ResearchIntent


class DrugNormalization(BaseModel):
    """Canonical identity of a colloquial or brand drug name."""

    rxcui: str
    name: str
    score: float = 0.0
    mesh_terms: list[str] = []

    @property
    def context(self) -> str:
        """Context string handed to the classifier, e.g. ``"Metamizole (MeSH: Dipyrone)"``."""
        if self.mesh_terms:
            return f"{self.name} (MeSH: {', '.join(self.mesh_terms)})"
        return self.name
