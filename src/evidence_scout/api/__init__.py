"""HTTP API for EvidenceScout."""
