"""Pipeline services for EvidenceScout."""
