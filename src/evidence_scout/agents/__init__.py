"""Agent modules for EvidenceScout."""

from evidence_scout.agents.base import BaseAgent
from evidence_scout.agents.literature import LiteratureAgent
from evidence_scout.agents.orchestrator import ResearchOrchestrator

__all__ = ["BaseAgent", "LiteratureAgent", "ResearchOrchestrator"]
