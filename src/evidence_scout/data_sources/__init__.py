"""External data source clients for EvidenceScout."""
