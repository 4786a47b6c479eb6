"""Project-wide constants."""

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 20.0
DEFAULT_MAX_RETRIES: int = 3

# -- Pipeline caps ----------------------------------------------------------
DEFAULT_PER_PROVIDER_LIMIT: int = 5
DEFAULT_MAX_SOURCES: int = 10
CONTEXT_ABSTRACT_MAX_CHARS: int = 1000
PROVIDER_TIMEOUT_MAX: float = 30.0

# -- PubMed / NCBI ----------------------------------------------------------
NCBI_BASE_URL: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
PUBMED_SEARCH_URL: str = f"{NCBI_BASE_URL}/esearch.fcgi"
PUBMED_FETCH_URL: str = f"{NCBI_BASE_URL}/efetch.fcgi"
PUBMED_ARTICLE_URL: str = "https://pubmed.ncbi.nlm.nih.gov/{pmid}/"
PUBMED_MAX_AUTHORS: int = 3

# -- OpenAlex ---------------------------------------------------------------
OPENALEX_WORKS_URL: str = "https://api.openalex.org/works"
OPENALEX_ID_PREFIX: str = "https://openalex.org/"
OPENALEX_SELECT_FIELDS: str = (
    "id,doi,title,publication_year,publication_date,"
    "primary_location,open_access,authorships,abstract_inverted_index"
)
OPENALEX_MAX_AUTHORS: int = 5

# -- Semantic Scholar -------------------------------------------------------
SEMANTIC_SCHOLAR_SEARCH_URL: str = (
    "https://api.semanticscholar.org/graph/v1/paper/search"
)
SEMANTIC_SCHOLAR_FIELDS: str = "title,abstract,authors,year,url,externalIds"
SEMANTIC_SCHOLAR_PAPER_URL: str = "https://www.semanticscholar.org/paper/{paper_id}"
SEMANTIC_SCHOLAR_MAX_AUTHORS: int = 3

# -- RxNav ------------------------------------------------------------------
RXNAV_BASE_URL: str = "https://rxnav.nlm.nih.gov/REST"
RXNAV_APPROXIMATE_TERM_URL: str = f"{RXNAV_BASE_URL}/approximateTerm.json"
RXNAV_PROPERTIES_URL: str = f"{RXNAV_BASE_URL}/rxcui/{{rxcui}}/allProperties.json"
RXNAV_MIN_NAME_SCORE: float = 50.0
RXNAV_MAX_MESH_TERMS: int = 3
RXNAV_TIMEOUT: float = 10.0

# -- Record placeholders ----------------------------------------------------
NO_TITLE: str = "no title"
NO_ABSTRACT: str = "abstract unavailable"
UNKNOWN_DATE: str = "unknown"

# -- User-facing messages, keyed by response language -----------------------
NO_EVIDENCE_MESSAGES: dict[str, str] = {
    "pt-BR": (
        "Não foram encontrados artigos relevantes para esta consulta. "
        "Tente reformular a pergunta ou ampliar o escopo."
    ),
    "en": (
        "No relevant articles were found for this query. "
        "Try rephrasing the question or broadening its scope."
    ),
}

LANGUAGE_NAMES: dict[str, str] = {
    "pt-BR": "Portuguese (pt-BR)",
    "en": "English",
}

PROGRESS_MESSAGES: dict[str, dict[str, str]] = {
    "pt-BR": {
        "normalizing": "💊 Identificando fármacos (RxNav)...",
        "classifying": "🧠 Analisando pergunta e critérios...",
        "searching": "🔍 Buscando evidências: \"{query}\"...",
        "strict": "🔍 Tentativa 1 (Estrita): buscando por \"{query}\"...",
        "relaxed": "⚠️ Nenhuma evidência estrita. Tentativa 2 (Relaxada): \"{query}\"...",
        "semantic": "⚠️ Buscando conceitos amplos. Tentativa 3 (Semântica): \"{query}\"...",
        "synthesizing": "⚖️ Avaliando {count} evidências...",
        "done": "✅ Concluído.",
        "no_evidence": "Nenhuma evidência encontrada.",
    },
    "en": {
        "normalizing": "💊 Identifying drugs (RxNav)...",
        "classifying": "🧠 Analyzing question and criteria...",
        "searching": "🔍 Searching evidence: \"{query}\"...",
        "strict": "🔍 Attempt 1 (Strict): searching for \"{query}\"...",
        "relaxed": "⚠️ No strict evidence. Attempt 2 (Relaxed): \"{query}\"...",
        "semantic": "⚠️ Searching broad concepts. Attempt 3 (Semantic): \"{query}\"...",
        "synthesizing": "⚖️ Appraising {count} pieces of evidence...",
        "done": "✅ Done.",
        "no_evidence": "No evidence found.",
    },
}

DEFAULT_LANGUAGE: str = "en"
