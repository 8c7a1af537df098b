"""Application services: background ingestion and similarity retrieval."""
