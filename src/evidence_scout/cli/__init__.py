"""Command-line interface for EvidenceScout."""
