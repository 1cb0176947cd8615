"""Service layer for ingestion, delivery and identity."""
