"""EvidenceScout: cited literature answers for clinical questions."""

__version__ = "0.1.0"
