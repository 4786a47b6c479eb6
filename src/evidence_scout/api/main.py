"""FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, field_validator

from evidence_scout import __version__
from evidence_scout.agents.orchestrator import build_orchestrator
from evidence_scout.config import get_settings
from evidence_scout.models.model_research import ResearchResult
from evidence_scout.services.synthesis import SynthesisError

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build one orchestrator per app so the HTTP sessions and the drug-name
    cache live for the whole server session.
    """
    app.state.orchestrator = build_orchestrator()
    logger.info("Research orchestrator initialized")
    try:
        yield
    finally:
        logger.info("Shutting down research orchestrator")
        await app.state.orchestrator.close()


app = FastAPI(
    title="EvidenceScout API",
    description="Cited literature answers for clinical questions",
    version=__version__,
    lifespan=lifespan,
)


class ResearchRequest(BaseModel):
    query: str = Field(min_length=1)
    strategy: Literal["keywords", "waterfall"] | None = None

    @field_validator("query", mode="before")
    @classmethod
    def strip_query(cls, value):
        return value.strip() if isinstance(value, str) else value


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.post("/research", response_model=ResearchResult)
async def research(request: ResearchRequest, http_request: Request) -> ResearchResult:
    """Run the research pipeline for one question."""
    orchestrator = http_request.app.state.orchestrator
    try:
        return await orchestrator.orchestrate_research(
            request.query, strategy=request.strategy
        )
    except SynthesisError as e:
        raise HTTPException(status_code=502, detail=f"Synthesis failed: {e}")
